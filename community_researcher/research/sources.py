"""
Recommended data sources per topic and country.

Pure lookup: no network. Country statistics offices are listed ahead of
the topic-generic international sources.
"""

from typing import Dict, List

from ..schemas.state import DataSource

BASE_SOURCES: Dict[str, tuple] = {
    "demographics": (
        DataSource("UN Population Division", "https://population.un.org/wpp/"),
        DataSource("World Bank Data", "https://data.worldbank.org/country/"),
        DataSource("UNICEF Data", "https://data.unicef.org/country/"),
    ),
    "agriculture": (
        DataSource("FAO Country Profiles", "http://www.fao.org/countryprofiles/en/"),
        DataSource("IFAD Rural Development Report", "https://www.ifad.org/en/web/knowledge/publications"),
        DataSource("World Bank Agriculture Data", "https://data.worldbank.org/topic/agriculture-and-rural-development"),
    ),
    "power": (
        DataSource("World Bank Sustainable Energy for All", "https://datacatalog.worldbank.org/dataset/sustainable-energy-all"),
        DataSource("IRENA Renewable Energy Statistics", "https://www.irena.org/Statistics"),
        DataSource("IEA Africa Energy Outlook", "https://www.iea.org/reports/africa-energy-outlook-2019"),
    ),
    "education": (
        DataSource("UNESCO Institute for Statistics", "http://uis.unesco.org/"),
        DataSource("Global Partnership for Education", "https://www.globalpartnership.org/where-we-work/"),
        DataSource("World Bank Education Statistics", "https://datatopics.worldbank.org/education/"),
    ),
    "livelihoods": (
        DataSource("ILO Country Profiles", "https://www.ilo.org/global/statistics-and-databases/lang--en/index.htm"),
        DataSource("World Bank Poverty and Equity Data", "https://datatopics.worldbank.org/poverty/"),
        DataSource("UNDP Human Development Reports", "http://hdr.undp.org/en/countries/"),
    ),
    "healthcare": (
        DataSource("WHO Country Profiles", "https://www.who.int/countries/"),
        DataSource("Global Health Data Exchange", "http://ghdx.healthdata.org/"),
        DataSource("UNICEF Health Data", "https://data.unicef.org/topic/health/"),
    ),
    "political": (
        DataSource("Bertelsmann Transformation Index", "https://www.bti-project.org/en/home.html"),
        DataSource("Freedom House Reports", "https://freedomhouse.org/countries/freedom-world/scores"),
        DataSource("International Crisis Group", "https://www.crisisgroup.org/africa/"),
    ),
    "food": (
        DataSource("WFP Hunger Map", "https://www.wfp.org/hunger-map"),
        DataSource("FAO Food Security Data", "http://www.fao.org/faostat/en/#home"),
        DataSource("FEWS NET", "https://fews.net/"),
    ),
    "leadership": (
        DataSource("Afrobarometer", "https://www.afrobarometer.org/"),
        DataSource("Mo Ibrahim Foundation", "https://mo.ibrahim.foundation/iiag"),
        DataSource("World Bank Governance Indicators", "https://info.worldbank.org/governance/wgi/"),
    ),
}

# "base" is the national statistics office; other keys are topic-specific
COUNTRY_SOURCES: Dict[str, Dict[str, DataSource]] = {
    "Kenya": {
        "base": DataSource("Kenya National Bureau of Statistics", "https://www.knbs.or.ke/"),
        "demographics": DataSource("Kenya Population and Housing Census", "https://www.knbs.or.ke/census-2019/"),
        "agriculture": DataSource("Kenya Agricultural Research Institute", "https://www.kalro.org/"),
    },
    "Tanzania": {
        "base": DataSource("Tanzania National Bureau of Statistics", "https://www.nbs.go.tz/"),
        "demographics": DataSource(
            "Tanzania Population and Housing Census",
            "https://www.nbs.go.tz/index.php/en/census-surveys/population-and-housing-census",
        ),
    },
    "Uganda": {
        "base": DataSource("Uganda Bureau of Statistics", "https://www.ubos.org/"),
    },
    "Ethiopia": {
        "base": DataSource("Ethiopia Central Statistical Agency", "https://www.statsethiopia.gov.et/"),
    },
    "Rwanda": {
        "base": DataSource("National Institute of Statistics Rwanda", "https://www.statistics.gov.rw/"),
    },
    "Nigeria": {
        "base": DataSource("National Bureau of Statistics Nigeria", "https://nigerianstat.gov.ng/"),
    },
    "Ghana": {
        "base": DataSource("Ghana Statistical Services", "https://www.statsghana.gov.gh/"),
    },
    "Senegal": {
        "base": DataSource("Agence Nationale de la Statistique et de la Démographie", "https://www.ansd.sn/"),
    },
}


def recommended_sources(topic_id: str, country: str) -> List[DataSource]:
    """
    Ordered sources for a topic in a country.

    Order: topic-specific country entry, national statistics office, then
    the topic-generic international sources. Always returns a new list.
    """
    sources = list(BASE_SOURCES.get(topic_id, ()))
    country_sources = COUNTRY_SOURCES.get(country.strip())
    if not country_sources:
        return sources

    prefix = []
    if topic_id in country_sources:
        prefix.append(country_sources[topic_id])
    if "base" in country_sources:
        prefix.append(country_sources["base"])
    return prefix + sources
