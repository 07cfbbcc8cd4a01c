"""Country code to continent classification.

The map is built from a GeoJSON-like feature collection (primary source),
overlaid with a static fallback table for codes the primary source does not
classify, and finally adjusted with pinned display-grouping overrides.
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from prosperity.logging_config import create_logger

logger = create_logger(__name__)

ISO3_PROPERTIES = ("ISO3166-1-Alpha-3", "ISO_A3", "ADM0_A3", "SOV_A3")
CONTINENT_PROPERTIES = ("CONTINENT", "continent", "CONTINENT_OCE", "region_un", "subregion")

# Natural Earth uses -99 where no ISO code is assigned
PLACEHOLDER_CODES = frozenset({"-99"})

# Russia is grouped with Europe for display consistency, whatever the
# primary source says.
PINNED_CONTINENTS: Mapping[str, str] = MappingProxyType({"RUS": "Europe"})

_AFRICA = (
    "DZA EGY MAR TUN LBY BFA BEN BWA BDI CMR CPV CAF TCD COM COD COG CIV DJI "
    "ERI ETH GNQ GAB GMB GHA GIN GNB KEN LSO LBR MDG MLI MRT MUS MOZ NAM NER "
    "NGA RWA STP SEN SYC SLE ZAF SSD SDN SWZ TGO UGA TZA ZMB ZWE SOM "
    "REU MYT ATF SHN ESH"
)
_AMERICAS = (
    "USA CAN MEX GTM BLZ SLV HND NIC CRI PAN CUB DOM HTI JAM TTO BRB BHS ATG "
    "GRD DMA KNA VCT LCA GUY SUR VEN COL PER ECU BOL CHL ARG PRY URY BRA GRL"
)
_ASIA = (
    "CHN IND JPN KOR PRK MNG AFG PAK BGD NPL LKA MDV BTN IRN IRQ ISR PSE JOR "
    "SAU ARE QAT KWT BHR OMN YEM TUR AZE ARM GEO KAZ KGZ TJK TKM UZB IDN MYS "
    "SGP THA VNM LAO KHM MMR PHL BRN TLS HKG MAC TWN"
)
_EUROPE = (
    "RUS ALB AND AUT BLR BEL BIH BGR HRV CZE DNK EST FIN FRA DEU GRC HUN ISL "
    "IRL ITA LVA LIE LTU LUX MLT MDA MCO MNE NLD MKD NOR POL PRT ROU SMR SRB "
    "SVK SVN ESP SWE CHE UKR GBR VAT GIB IMN FRO XKX"
)
_OCEANIA = (
    "AUS NZL PNG SLB VUT FJI TON WSM KIR TUV NRU PLW MHL COK NIU NCL PYF NFK GUM"
)

FALLBACK_CONTINENTS: Mapping[str, str] = MappingProxyType(
    {
        code: continent
        for continent, codes in (
            ("Africa", _AFRICA),
            ("Americas", _AMERICAS),
            ("Asia", _ASIA),
            ("Europe", _EUROPE),
            ("Oceania", _OCEANIA),
        )
        for code in codes.split()
    }
)


def _first_present(properties: Mapping[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = properties.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def extract_iso3(properties: Mapping[str, Any]) -> Optional[str]:
    """First usable alpha-3 code among the known properties, uppercased."""
    for key in ISO3_PROPERTIES:
        value = properties.get(key)
        if value is None:
            continue
        code = str(value).replace(" ", "").strip().upper()
        if code and code not in PLACEHOLDER_CODES:
            return code
    return None


def extract_continent(properties: Mapping[str, Any]) -> Optional[str]:
    """First non-empty continent/region label among the known properties."""
    return _first_present(properties, CONTINENT_PROPERTIES)


class ContinentClassifier:
    """Build an immutable code -> continent map.

    The primary feature collection always wins over the fallback table; the
    fallback only fills codes the primary pass left unclassified. A missing
    or malformed primary payload degrades to the fallback table alone.
    """

    def __init__(
        self,
        fallback: Mapping[str, str] = FALLBACK_CONTINENTS,
        pinned: Mapping[str, str] = PINNED_CONTINENTS,
    ):
        self.fallback = fallback
        self.pinned = pinned

    def primary_pass(self, feature_collection: Any) -> Dict[str, str]:
        """Classify every feature carrying both an ISO3 code and a continent."""
        mapping: Dict[str, str] = {}
        if not isinstance(feature_collection, dict):
            if feature_collection is not None:
                logger.warning("Geographic source is not a JSON object; using fallback table")
            return mapping

        features = feature_collection.get("features")
        if not isinstance(features, list):
            logger.warning("Geographic source has no feature list; using fallback table")
            return mapping

        for feature in features:
            properties = feature.get("properties") if isinstance(feature, dict) else None
            if not isinstance(properties, dict):
                continue
            iso = extract_iso3(properties)
            continent = extract_continent(properties)
            if iso and continent:
                mapping[iso] = continent
        return mapping

    def build(self, feature_collection: Any = None) -> Mapping[str, str]:
        """Return the merged, read-only continent map."""
        mapping = self.primary_pass(feature_collection)
        primary_count = len(mapping)

        for code, continent in self.fallback.items():
            mapping.setdefault(code, continent)
        mapping.update(self.pinned)

        logger.info(
            f"Continent map built: {primary_count} from primary source, "
            f"{len(mapping) - primary_count} from fallback"
        )
        return MappingProxyType(mapping)


def build_continent_map(feature_collection: Any = None) -> Mapping[str, str]:
    """Convenience wrapper around ``ContinentClassifier().build``."""
    return ContinentClassifier().build(feature_collection)
