"""The Common Impact Data Standard (CIDS) entity types and the SFF extension module."""

from __future__ import annotations

from functools import cache

from .fields import SFF_CONTEXT, SFF_PREFIX, EntityType, FieldSpec, id_field
from .kinds import ValueKind
from .registry import MembershipRule, SchemaRegistry

S = ValueKind.STRING
T = ValueKind.TEXT
N = ValueKind.NUMBER
D = ValueKind.DATE
DT = ValueKind.DATETIME
B = ValueKind.BOOLEAN
M = ValueKind.MEASUREMENT


def _f(name: str, kind: ValueKind, **flags: object) -> FieldSpec:
    return FieldSpec(name=name, kind=kind, **flags)  # type: ignore[arg-type]


def _link(name: str, target: str, inverse: str | None, **flags: object) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=ValueKind.LINK,
        link_target=target,
        link_inverse=inverse,
        **flags,  # type: ignore[arg-type]
    )


def _select(name: str, code_list: str, **flags: object) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=ValueKind.SELECT,
        code_list=code_list,
        **flags,  # type: ignore[arg-type]
    )


def _cids(name: str, *fields: FieldSpec) -> EntityType:
    return EntityType(name=name, fields=(id_field(), *fields))


def _sff(name: str, *fields: FieldSpec) -> EntityType:
    return EntityType(
        name=name, fields=(id_field(), *fields), prefix=SFF_PREFIX, context=SFF_CONTEXT
    )


REQ = {"not_null": True, "required": True}
SEMI = {"semi_required": True}
NN_SEMI = {"not_null": True, "semi_required": True}

BASIC_TYPES: tuple[EntityType, ...] = (
    _cids(
        "Organization",
        _f("org:hasLegalName", S, unique=True, **REQ),
        _link("hasAddress", "Address", "forOrganization", **SEMI),
        _link("hasIndicator", "Indicator", "forOrganization"),
        _link("hasOutcome", "Outcome", "forOrganization"),
    ),
    _cids(
        "Theme",
        _f("hasName", S, **NN_SEMI),
        _f("hasDescription", T),
        _f("hasCode", S),
        _link("relatesTo", "Theme", None),
    ),
    _cids(
        "Outcome",
        _f("hasName", S, **REQ),
        _f("hasDescription", T, **REQ),
        _link("hasIndicator", "Indicator", "forOutcome", **REQ),
        _link("forOrganization", "Organization", "hasOutcome"),
    ),
    _cids(
        "Indicator",
        _f("hasName", S, unique=True, **REQ),
        _f("hasDescription", T),
        _link("forOrganization", "Organization", "hasIndicator"),
        _link("forOutcome", "Outcome", "hasIndicator"),
        _link("hasIndicatorReport", "IndicatorReport", "forIndicator"),
    ),
    _cids(
        "IndicatorReport",
        _f("hasName", S, unique=True, **REQ),
        _f("hasComment", S),
        _f("i72:value", M, **REQ),
        _f("i72:unit_of_measure", S),
        _link("forIndicator", "Indicator", "hasIndicatorReport", **SEMI),
    ),
    _cids(
        "Address",
        _f("streetAddress", T, required=True),
        _f("extendedAddress", S),
        _f("addressLocality", S),
        _f("addressRegion", S),
        _f("postalCode", S),
        _f("addressCountry", S),
        _f("postOfficeBoxNumber", S),
    ),
    _cids("Population", _f("rdfs:label", S, **REQ)),
    _cids(
        "ImpactReport",
        _f("hasName", S, unique=True, **REQ),
        _link("forOrganization", "Organization", "hasImpactReport", **SEMI),
        _f("prov:startedAtTime", DT, **NN_SEMI),
        _f("prov:endedAtTime", DT, **NN_SEMI),
    ),
)

SFF_TYPES: tuple[EntityType, ...] = (
    _sff(
        "OrganizationProfile",
        _link("forOrganization", "Organization", "hasOrganizationProfile", **SEMI),
        _link("hasPrimaryContact", "Person", "forOrganizationProfile", **SEMI),
        _link(
            "hasManagementTeamProfile",
            "TeamProfile",
            "forOrganizationProfileManagementTeam",
            **SEMI,
        ),
        _link("hasBoardProfile", "TeamProfile", "forOrganizationProfileBoard", **SEMI),
        _link("sectorServed", "Sector", "forOrganizationProfile", **SEMI),
        _select("localityServed", "Locality", **SEMI),
        _select("provinceTerritoryServed", "ProvinceTerritory", **SEMI),
        _link("primaryPopulationServed", "PopulationServed", "forOrganizationProfile", **SEMI),
        _select("organizationType", "OrganizationType", **SEMI),
        _link("servesEDG", "EquityDeservingGroup", "forOrganizationProfile", **SEMI),
        _link("hasFundingStatus", "FundingStatus", "forOrganizationProfile", **SEMI),
        _f("reportedDate", D),
    ),
    _sff(
        "TeamProfile",
        _f("hasTeamSize", S, **NN_SEMI),
        _f("hasEDGSize", S),
        _link("hasEDGProfile", "EDGProfile", "forTeamProfile"),
        _f("hasComment", T),
        _f("reportedDate", D, **NN_SEMI),
    ),
    _sff(
        "EDGProfile",
        _link("forEDG", "EquityDeservingGroup", "hasEDGProfile", **NN_SEMI),
        _f("hasSize", N, **SEMI),
        _f("reportedDate", DT, **NN_SEMI),
    ),
    _sff(
        "EquityDeservingGroup",
        _f("hasDescription", T),
        _link("hasCharacteristic", "Characteristic", "forEquityDeservingGroup"),
        _f("isDefined", B),
    ),
    _sff(
        "Person",
        _f("foaf:givenName", S, **NN_SEMI),
        _f("foaf:familyName", S, **NN_SEMI),
        _f("ic:hasEmail", S, **SEMI),
    ),
    _sff(
        "Characteristic",
        _f("hasName", S, **NN_SEMI),
        _f("hasValue", S, **SEMI),
        _f("hasCode", S, **SEMI),
    ),
    _sff(
        "FundingStatus",
        _link("forFunderId", "Organization", "hasFundingStatus", **NN_SEMI),
        _f("forFunder", S),
        _link("hasFundingState", "FundingState", "forFundingStatus", required=True),
        _f("hasDescription", T),
        _f("reportedDate", D),
    ),
    _sff("FundingState", _f("hasName", S, **NN_SEMI), _f("hasDescription", T)),
    _sff(
        "Sector",
        _f("hasIdentifier", S),
        _f("hasName", S, **NN_SEMI),
        _f("hasDescription", T),
    ),
    _sff(
        "PopulationServed",
        _f("hasIdentifier", S, **NN_SEMI),
        _f("org:hasName", S, **NN_SEMI),
        _f("hasDescription", T),
    ),
    _sff(
        "ReportInfo",
        _f("org:hasName", S, unique=True, **REQ),
        _link("forOrganization", "Organization", "hasReportInfo", **SEMI),
        _f("prov:startedAtTime", DT, **NN_SEMI),
        _f("prov:endedAtTime", DT, **NN_SEMI),
    ),
    _sff(
        "OrganizationID",
        _link("forOrganization", "Organization", "hasID", **SEMI),
        _f("hasIdentifier", S, **SEMI),
        _link("issuedBy", "CorporateRegistrar", "issuedOrganizationID", **SEMI),
    ),
    _sff(
        "CorporateRegistrar",
        _f("hasIdentifier", S),
        _f("cids:hasName", S, **REQ),
        _f("cids:hasDescription", T),
    ),
    _sff("Locality", _f("instance", S, **NN_SEMI), _f("hasName", S, **NN_SEMI)),
    _sff("ProvinceTerritory", _f("instance", S, **NN_SEMI), _f("hasName", S, **NN_SEMI)),
    _sff(
        "OrganizationType",
        _f("hasIdentifier", S),
        _f("hasName", S, **NN_SEMI),
        _f("hasDescription", T),
    ),
)

# Inverse links the backing store maintains on its own.
IGNORED_FIELDS: dict[str, tuple[str, ...]] = {
    "Organization": (
        "hasOrganizationProfile",
        "hasFundingStatus",
        "hasReportInfo",
        "hasIndicatorReport",
        "hasImpactReport",
        "hasID",
    ),
    "Theme": ("hasOutcome", "hasIndicator"),
    "Address": ("forOrganization",),
    "Person": ("forOrganizationProfile",),
    "TeamProfile": ("forOrganizationProfileManagementTeam", "forOrganizationProfileBoard"),
    "EquityDeservingGroup": ("forOrganizationProfile", "hasEDGProfile"),
    "FundingStatus": ("forOrganizationProfile",),
    "Characteristic": ("forEquityDeservingGroup",),
    "EDGProfile": ("forTeamProfile",),
    "FundingState": ("forFundingStatus",),
    "Sector": ("forOrganizationProfile",),
    "PopulationServed": ("forOrganizationProfile", "forCharacteristic"),
    "Population": ("forIndicator", "cardinalityForIndicator"),
    "CorporateRegistrar": ("forOrganizationID", "issuedOrganizationID"),
}

MEMBERSHIP_RULES: tuple[MembershipRule, ...] = (
    MembershipRule(container="Organization", field="hasIndicator", member="Indicator"),
)

CODE_LISTS: tuple[str, ...] = (
    "Sector",
    "PopulationServed",
    "Locality",
    "ProvinceTerritory",
    "OrganizationType",
    "CorporateRegistrar",
    "EquityDeservingGroup",
)

KNOWN_EXTERNAL_TYPES: tuple[str, ...] = (
    "i72:Measure",
    "i72:Unit_of_measure",
    "i72:Cardinality_of_a_set",
)


@cache
def default_registry() -> SchemaRegistry:
    return SchemaRegistry(
        (*BASIC_TYPES, *SFF_TYPES),
        ignored_fields=IGNORED_FIELDS,
        membership_rules=MEMBERSHIP_RULES,
        code_lists=CODE_LISTS,
        known_external_types=KNOWN_EXTERNAL_TYPES,
    )
