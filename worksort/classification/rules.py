"""Rule Tables - static lookup tables for bucket assignment.

This module holds the category -> bucket table, the ordered
bucket -> name-token table, the domain definitions (piping, ductwork)
with their system-classification mappings, and the JSON loader used to
inject custom tables.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from worksort.core.models import SystemClassification

logger = logging.getLogger("worksort.classification.rules")


def contains_ignore_case(haystack: str | None, needle: str | None) -> bool:
    """Case-insensitive substring test; empty values never match."""
    if not haystack or not needle:
        return False
    return needle.lower() in haystack.lower()


def token_matches(value: str | None, tokens: Iterable[str]) -> bool:
    """Check if any token occurs in a value.

    Tokens are trimmed; blank tokens are ignored.
    """
    if not value:
        return False
    for raw in tokens:
        if not raw or not raw.strip():
            continue
        if contains_ignore_case(value, raw.strip()):
            return True
    return False


@dataclass
class TokenRule:
    """An entry of the ordered bucket -> name-token table."""

    bucket_name: str
    tokens: list[str] = field(default_factory=list)

    def matches_any(self, values: Iterable[str]) -> bool:
        return any(token_matches(value, self.tokens) for value in values)


@dataclass
class KeywordRule:
    """Maps system-classification keywords to a bucket.

    Attributes:
        bucket_name: Bucket to assign on match
        kind_keywords: Keywords tested against the classification kind
        label_keywords: Keywords tested against the system type label
    """

    bucket_name: str
    kind_keywords: list[str] = field(default_factory=list)
    label_keywords: list[str] = field(default_factory=list)

    def matches(self, classification: SystemClassification) -> bool:
        return token_matches(classification.kind, self.kind_keywords) or token_matches(
            classification.label, self.label_keywords
        )


@dataclass
class ClassificationMapping:
    """Domain-specific mapping from a system classification to a bucket name.

    Rules are tested in order, the first match wins. Elements without a
    classification, or matching no rule, get the default bucket.
    """

    rules: list[KeywordRule] = field(default_factory=list)
    default_bucket: str | None = None

    def map(self, classification: SystemClassification | None) -> str | None:
        if classification is not None:
            for rule in self.rules:
                if rule.matches(classification):
                    return rule.bucket_name
        return self.default_bucket

    def __call__(self, classification: SystemClassification | None) -> str | None:
        return self.map(classification)


@dataclass
class DomainSpec:
    """A sub-population with its own classification and connectivity rules.

    Attributes:
        name: Domain identifier (e.g. "piping")
        categories: Auxiliary categories (fittings, accessories)
        carrier_categories: Run categories that carry the system classification
        token_buckets: Buckets the token pass may pick for members of the domain
        mapping: System classification mapping, None if the domain has none
    """

    name: str
    categories: set[str] = field(default_factory=set)
    carrier_categories: set[str] = field(default_factory=set)
    token_buckets: list[str] = field(default_factory=list)
    mapping: ClassificationMapping | None = None

    @property
    def member_categories(self) -> set[str]:
        return self.categories | self.carrier_categories

    def contains(self, category: str) -> bool:
        return category in self.member_categories

    def is_carrier(self, category: str) -> bool:
        return category in self.carrier_categories


@dataclass
class RuleTables:
    """All static rule tables consulted by the engine.

    Attributes:
        category_to_bucket: Category tag -> bucket name, in pass order
        token_rules: Ordered token table; earlier entries win
        domains: Domain definitions
        token_excluded_categories: Categories the token pass never touches
        version: Version label of the loaded tables
    """

    category_to_bucket: dict[str, str] = field(default_factory=dict)
    token_rules: list[TokenRule] = field(default_factory=list)
    domains: list[DomainSpec] = field(default_factory=list)
    token_excluded_categories: set[str] = field(default_factory=set)
    version: str = "unknown"

    def domain_for(self, category: str) -> DomainSpec | None:
        """Get the domain an element category belongs to."""
        for domain in self.domains:
            if domain.contains(category):
                return domain
        return None

    def token_rules_for(self, category: str) -> list[TokenRule]:
        """Get the token table subset applicable to a category.

        Members of a domain with scoped buckets only see those buckets,
        in table order. Everything else sees the full table.
        """
        domain = self.domain_for(category)
        if domain is None or not domain.token_buckets:
            return self.token_rules

        allowed = {name.lower() for name in domain.token_buckets}
        return [rule for rule in self.token_rules if rule.bucket_name.lower() in allowed]

    def match_tokens(self, category: str, values: Iterable[str]) -> str | None:
        """Find the first token rule matching any of the values.

        Returns:
            Matched bucket name, or None.
        """
        values = list(values)
        for rule in self.token_rules_for(category):
            if rule.matches_any(values):
                return rule.bucket_name
        return None

    def bucket_names(self) -> set[str]:
        """Get every bucket name referenced by the tables."""
        names = set(self.category_to_bucket.values())
        names.update(rule.bucket_name for rule in self.token_rules)
        for domain in self.domains:
            if domain.mapping:
                names.update(rule.bucket_name for rule in domain.mapping.rules)
                if domain.mapping.default_bucket:
                    names.add(domain.mapping.default_bucket)
        return names

    def validate(self) -> list[str]:
        """Validate the tables and return a list of issues (empty if valid)."""
        issues = []

        seen: set[str] = set()
        for i, rule in enumerate(self.token_rules):
            key = rule.bucket_name.lower()
            if key in seen:
                issues.append(f"token_rules[{i}]: duplicate bucket '{rule.bucket_name}'")
            seen.add(key)
            if not any(t and t.strip() for t in rule.tokens):
                issues.append(f"token_rules[{i}] ({rule.bucket_name}): no tokens")

        for category, bucket in self.category_to_bucket.items():
            if not bucket:
                issues.append(f"category_to_bucket: '{category}' maps to an empty bucket name")

        claimed_by: dict[str, str] = {}
        for domain in self.domains:
            for name in domain.token_buckets:
                if name.lower() not in seen:
                    issues.append(
                        f"domain '{domain.name}': token bucket '{name}' is not in the token table"
                    )
            for category in domain.member_categories:
                if category in claimed_by:
                    issues.append(
                        f"domain '{domain.name}': category '{category}' already belongs "
                        f"to domain '{claimed_by[category]}'"
                    )
                claimed_by.setdefault(category, domain.name)
            if domain.carrier_categories and domain.mapping is None:
                issues.append(f"domain '{domain.name}': carriers declared without a mapping")

        return issues

    def to_dict(self) -> dict[str, Any]:
        """Convert the tables to a dictionary for JSON serialization."""
        return {
            "version": self.version,
            "category_to_bucket": dict(self.category_to_bucket),
            "token_rules": [
                {"bucket": rule.bucket_name, "tokens": list(rule.tokens)}
                for rule in self.token_rules
            ],
            "domains": [
                {
                    "name": domain.name,
                    "categories": sorted(domain.categories),
                    "carrier_categories": sorted(domain.carrier_categories),
                    "token_buckets": list(domain.token_buckets),
                    "classification": (
                        {
                            "default_bucket": domain.mapping.default_bucket,
                            "rules": [
                                {
                                    "bucket": rule.bucket_name,
                                    "kind_keywords": list(rule.kind_keywords),
                                    "label_keywords": list(rule.label_keywords),
                                }
                                for rule in domain.mapping.rules
                            ],
                        }
                        if domain.mapping
                        else None
                    ),
                }
                for domain in self.domains
            ],
            "token_excluded_categories": sorted(self.token_excluded_categories),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleTables":
        """Create rule tables from a dictionary."""
        token_rules = [
            TokenRule(bucket_name=item["bucket"], tokens=list(item.get("tokens", [])))
            for item in data.get("token_rules", [])
        ]

        domains = []
        for item in data.get("domains", []):
            mapping = None
            mapping_data = item.get("classification")
            if mapping_data:
                mapping = ClassificationMapping(
                    rules=[
                        KeywordRule(
                            bucket_name=rule["bucket"],
                            kind_keywords=list(rule.get("kind_keywords", [])),
                            label_keywords=list(rule.get("label_keywords", [])),
                        )
                        for rule in mapping_data.get("rules", [])
                    ],
                    default_bucket=mapping_data.get("default_bucket"),
                )
            domains.append(
                DomainSpec(
                    name=item["name"],
                    categories=set(item.get("categories", [])),
                    carrier_categories=set(item.get("carrier_categories", [])),
                    token_buckets=list(item.get("token_buckets", [])),
                    mapping=mapping,
                )
            )

        return cls(
            category_to_bucket=dict(data.get("category_to_bucket", {})),
            token_rules=token_rules,
            domains=domains,
            token_excluded_categories=set(data.get("token_excluded_categories", [])),
            version=str(data.get("version", "unknown")),
        )


def load_rule_tables(file_path: Path) -> RuleTables:
    """Load rule tables from a JSON file.

    Args:
        file_path: Path to the rules JSON file.

    Returns:
        Loaded RuleTables.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON is invalid or malformed.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Rules file not found: {file_path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a JSON object")

    try:
        tables = RuleTables.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed rules file: {e}") from e

    logger.info(
        f"Loaded rules from {file_path} (version: {tables.version}, "
        f"{len(tables.category_to_bucket)} categories, {len(tables.token_rules)} token rules)"
    )
    return tables


def save_rule_tables(tables: RuleTables, file_path: Path) -> None:
    """Write rule tables to a JSON file."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(tables.to_dict(), indent=2), encoding="utf-8")


# Category -> bucket (clear, known relationships)
DEFAULT_CATEGORY_TO_BUCKET = {
    "OST_Levels": "QA1_LevelsGrids",
    "OST_Grids": "QA1_LevelsGrids",
    "OST_VolumeOfInterest": "QA3_ScopeBoxes",
    "OST_CLines": "QA3_ReferencePlanes",
    "OST_RoomSeparationLines": "QA2_SpacesSeparationLines",
    "OST_MEPSpaces": "QA2_SpacesSeparationLines",
    # Structure
    "OST_StructuralFoundation": "S1_SubStructure",
    "OST_StructuralFraming": "S1_SuperStructure",
    "OST_StructuralColumns": "S1_SuperStructure",
    "OST_Walls": "S1_SuperStructure",
    "OST_Floors": "S1_SuperStructure",
    "OST_Stairs": "S1_SuperStructure",
    "OST_StairsLandings": "S1_SuperStructure",
    "OST_Ramps": "S1_SuperStructure",
    # Electrical containment
    "OST_CableTray": "E1_Containment",
    "OST_CableTrayFitting": "E1_Containment",
    "OST_CableTrayRun": "E1_Containment",
    "OST_Conduit": "E1_Containment",
    "OST_ConduitFitting": "E1_Containment",
    # Electrical equipment and devices
    "OST_ElectricalEquipment": "E1_ElectricalEquipment",
    "OST_DataDevices": "E1_ITTelecoms",
    "OST_FireAlarmDevices": "E1_FireAlarm",
    "OST_LightingDevices": "E1_Lighting",
    "OST_LightingFixtures": "E1_Lighting",
    "OST_SecurityDevices": "E1_Security",
    "OST_ElectricalFixtures": "E1_SmallPower",
    "OST_MechanicalEquipment": "Z1_MEPEquipment",
    "OST_Sprinklers": "F1_SprinklerPipework",
    # Pipe and duct systems
    "OST_PipeCurves": "M1_Pipework",
    "OST_PipeFitting": "M1_Pipework",
    "OST_PipeAccessory": "M1_Pipework",
    "OST_DuctCurves": "M1_Ventilation",
    "OST_DuctFitting": "M1_Ventilation",
    "OST_DuctAccessory": "M1_Ventilation",
    "OST_FlexDuctCurves": "M1_Ventilation",
    "OST_Mass": "Z1_Mass",
}

# Bucket -> name tokens; earlier entries win (P1 before M1)
DEFAULT_TOKEN_RULES = [
    ("S1_SubStructure", ["Foundation", "Pile"]),
    (
        "S1_SuperStructure",
        ["Framing", "Slab", "BWHRectangular", "Opening", "ColumnHead", "Corbel", "Plinth",
         "LiftPit", "Joint"],
    ),
    (
        "E1_Containment",
        ["ServiceHole", "Conduit", "Tray", "CableCarrier", "CableTray", "Ladder", "Busbar",
         "BusDuct"],
    ),
    ("E1_ElectricalEquipment", ["AudioVisual", "CommDevice"]),
    ("E1_ITTelecoms", ["CommsAppliance", "DataCabinet", "ONTEnclosure", "FibreGateway"]),
    (
        "E1_FireAlarm",
        ["Alarm_Fire", "FireManualCallPoint", "FireIntercom", "FireModule", "FireSwitch",
         "FireVisualIndicator", "Sensor_Fire", "Aspirating"],
    ),
    (
        "E1_Lighting",
        ["LightFixture", "LightingTrack", "ExitSign", "FloodLight", "Bollard",
         "Controller_Lighting", "LightingControlModule", "LEDDriver", "TrackSpotlight",
         "NoEntrySign"],
    ),
    (
        "E1_Security",
        ["Alarm_Security", "SecurityCamera", "AccessControl", "Intercom", "MagneticLock",
         "VehicleBarrier", "TrafficLight", "SecurityCorner", "SecurityPanel", "Sensor_Security"],
    ),
    (
        "E1_SmallPower",
        ["Outlet_", "PowerWall", "PowerFloor", "PowerCeiling", "PowerBelowDesk",
         "PowerAboveDesk", "DataGridOutletPoint", "DataFloor", "DataWall", "DataCeiling",
         "RotaryIsolator", "SwitchIsolator", "EmergencyStop", "CommandoWall", "CarCharging",
         "ChargingOutlet", "PowerCompartmentFloor", "PowerWithinIntegralTransformer"],
    ),
    (
        "P1_Drainage",
        ["Drainage", "WasteTerminal", "Gulley", "Gully", "GutterOutlet", "RoofOutlet",
         "ParapetOutlet", "BalconyOutlet", "Channel", "STrap", "PTrap", "WaterlessTrap",
         "Tundish", "AirAdmittanceValve", "AAV", "Sewage", "DrainageLiftingStation",
         "Submersible"],
    ),
    (
        "P1_WaterServices",
        ["ColdWaterStorage", "Calorifier", "ElectricWaterHeater", "ElectricShower",
         "InstantaneousElectric", "WaterSoftener", "ChlorineDioxide", "DosingPot",
         "CombinedDosing", "PackagedSideStream", "WaterMeter", "TenantWater",
         "WaterMeterMultiJet", "WaterMeterUltrasonic"],
    ),
    ("P1_Condensate", ["Condensate"]),
    (
        "M1_Ventilation",
        ["AHU", "AirHandling", "CRAC", "CracUnit", "DryAir", "DryAirVBlock", "EvaporativeCooler",
         "CoolingCoil", "HeatingCoil", "AirTerminal", "Grille", "Louvre", "DiscValve",
         "DuctSilencer", "DuctFitting", "CapEnd", "Elbow", "Radius", "FlatDuct", "Oval",
         "RectangularRoundConnection", "Fan_", "Centrifugal", "Axial", "Inline", "Induction",
         "Impulse", "Destratification", "Hood", "Plug", "Condenser", "HeatPump", "MVHR",
         "HybridVent", "EnergyMeter"],
    ),
    (
        "M1_Pipework",
        ["PipeFitting", "Elbow", "Tee", "Reducer", "Cap", "Union", "Flange", "Valve_",
         "CheckValve", "BallValve", "ButterflyValve", "GateValve", "Strainer", "Solenoid",
         "MixingValve", "Thermostatic", "DoubleRegulating", "PressureReducing",
         "PressureRegulating", "DifferentialPressure", "OrificePlate", "AirRelease", "DrainCock",
         "SafetyRelief", "SurgeArrestor", "HammerArrestor", "FlushingBypass", "BreechingInlet",
         "FireFlowSwitch", "WetRiser", "DryRiser", "Pump_", "BoosterSet", "EndSuction",
         "InlineCirculator", "VerticalInline", "PressurisationUnit", "Tank_", "OilStorage",
         "ExpansionVessel", "BufferVessel", "HeatExchanger", "HeatInterface", "WaterFilter",
         "Filter_Water", "HydroMag", "AirSeparator", "DirtSeparator", "FlowInstrument",
         "PressureGauge", "TemperatureGauge", "FlowSwitch", "Sensor_Temperature", "Sensor_Flow",
         "TestPoint", "FlowMeter", "GasMeter", "OilMeter"],
    ),
    ("F1_SprinklerPipework", ["Sprinkler"]),
    ("QA1_LevelsGrids", ["ExampleLG"]),
    ("QA3_ScopeBoxes", ["ExampleScope"]),
    ("QA3_ReferencePlanes", ["ExampleRef"]),
    ("QA2_SpacesSeparationLines", ["ExampleSpace"]),
    ("Z1_Mass", ["ExampleMass"]),
    ("S2_Existing", ["ExampleExisting"]),
]

PIPING_CLASSIFICATION = ClassificationMapping(
    rules=[
        KeywordRule("F1_SprinklerPipework", ["FireProtection"], ["Fire", "Sprinkler"]),
        KeywordRule("P1_Drainage", ["Sanitary", "Sewer", "Drainage", "Roof"]),
        KeywordRule("P1_WaterServices", ["Domestic", "ColdWater", "HotWater", "Water"]),
        KeywordRule("P1_Condensate", ["Condensate"], ["Condensate"]),
    ],
    default_bucket="M1_Pipework",
)


def default_rule_tables() -> RuleTables:
    """Create the production rule tables.

    Returns:
        A fresh RuleTables instance; callers may modify it freely.
    """
    piping = DomainSpec(
        name="piping",
        categories={"OST_PipeFitting", "OST_PipeAccessory"},
        carrier_categories={"OST_PipeCurves"},
        token_buckets=[
            "P1_Drainage",
            "P1_WaterServices",
            "P1_Condensate",
            "F1_SprinklerPipework",
            "M1_Pipework",
        ],
        mapping=ClassificationMapping(
            rules=[
                KeywordRule(r.bucket_name, list(r.kind_keywords), list(r.label_keywords))
                for r in PIPING_CLASSIFICATION.rules
            ],
            default_bucket=PIPING_CLASSIFICATION.default_bucket,
        ),
    )
    ductwork = DomainSpec(
        name="ductwork",
        categories={"OST_DuctCurves", "OST_DuctFitting", "OST_DuctAccessory", "OST_FlexDuctCurves"},
        token_buckets=["M1_Ventilation"],
    )

    return RuleTables(
        category_to_bucket=dict(DEFAULT_CATEGORY_TO_BUCKET),
        token_rules=[TokenRule(name, list(tokens)) for name, tokens in DEFAULT_TOKEN_RULES],
        domains=[piping, ductwork],
        # Mechanical equipment stays on its category bucket
        token_excluded_categories={"OST_MechanicalEquipment"},
        version="builtin",
    )
