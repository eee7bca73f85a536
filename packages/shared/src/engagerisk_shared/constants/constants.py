"""Shared constants for EngageRisk."""

from engagerisk_shared.types.enums import ContractType, CountryTier, Industry

# ─── Exit Codes ────────────────────────────────────────────────────────────────
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_NOT_FOUND = 4
EXIT_RATE_LIMITED = 5

# ─── Score Scale ───────────────────────────────────────────────────────────────
MAX_SCORE = 15
LOW_MAX_SCORE = 3      # 0-3   -> Low
MEDIUM_MAX_SCORE = 8   # 4-8   -> Medium, 9-15 -> High

MIN_REASONS = 3
MAX_REASONS = 6
FILLER_REASON = "Regular compliance monitoring recommended"
FILLER_REASONS: tuple[str, ...] = (FILLER_REASON,)

# ─── Jurisdiction Tiers ────────────────────────────────────────────────────────
COUNTRY_TIERS: dict[CountryTier, tuple[str, ...]] = {
    CountryTier.VERY_LOW: ("CH", "SG", "LU", "NZ"),
    CountryTier.LOW: ("US", "CA", "AU", "DK", "SE", "NO", "NL", "DE"),
    CountryTier.MEDIUM: ("GB", "FR", "IT", "ES", "PT", "IE", "BE", "AT"),
    CountryTier.HIGH: ("BR", "MX", "IN", "CN", "RU", "TR", "EG", "ZA"),
    CountryTier.VERY_HIGH: ("IQ", "AF", "SY", "LY", "VE", "IR", "KP"),
}

TIER_POINTS: dict[CountryTier, int] = {
    CountryTier.VERY_LOW: 0,
    CountryTier.LOW: 1,
    CountryTier.MEDIUM: 2,
    CountryTier.HIGH: 3,
    CountryTier.VERY_HIGH: 5,
    CountryTier.UNKNOWN: 2,
}

TIER_REASONS: dict[CountryTier, str] = {
    CountryTier.VERY_LOW: "Very low regulatory complexity jurisdiction",
    CountryTier.LOW: "Stable jurisdiction with established frameworks",
    CountryTier.MEDIUM: "Moderate regulatory complexity",
    CountryTier.HIGH: "Complex regulatory environment requires careful navigation",
    CountryTier.VERY_HIGH: "High-risk jurisdiction with sanctions or instability concerns",
    CountryTier.UNKNOWN: "Unknown jurisdiction requires research and due diligence",
}

# EU member states plus EEA and UK: GDPR-style obligations apply
REGULATED_BLOC_COUNTRIES: tuple[str, ...] = (
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE",
    "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT",
    "RO", "SK", "SI", "ES", "SE", "GB", "IS", "LI", "NO",
)

# ─── Contract Types ────────────────────────────────────────────────────────────
CONTRACT_TYPE_POINTS: dict[ContractType, int] = {
    ContractType.INDEPENDENT: 2,
    ContractType.AGENCY: 1,
    ContractType.EOR: -1,
    ContractType.UNKNOWN: TIER_POINTS[CountryTier.UNKNOWN],
}

CONTRACT_TYPE_REASONS: dict[ContractType, str] = {
    ContractType.INDEPENDENT: "Independent contractor classification requires careful documentation",
    ContractType.AGENCY: "Agency arrangement requires clear liability boundaries",
    ContractType.EOR: "Employer of Record structure provides compliance protection",
    ContractType.UNKNOWN: "Unrecognised contract structure requires classification review",
}

# ─── Contract Value Tiers (USD, ascending) ─────────────────────────────────────
VALUE_TIERS: tuple[tuple[float, int, str], ...] = (
    (50_000, 1, "Moderate contract value requires standard compliance measures"),
    (100_000, 2, "High contract value (>$100k) increases commercial exposure"),
    (250_000, 3, "Very high contract value (>$250k) requires enhanced due diligence"),
)

INDEPENDENT_HIGH_VALUE_THRESHOLD = 75_000
COMPOUND_IP_VALUE_THRESHOLD = 100_000

# ─── Industry Multipliers ──────────────────────────────────────────────────────
INDUSTRY_FACTORS: dict[Industry, tuple[float, str]] = {
    Industry.FINANCE: (1.5, "Financial services require enhanced regulatory compliance"),
    Industry.HEALTHCARE: (1.4, "Healthcare data involves strict privacy regulations"),
    Industry.DEFENSE: (1.8, "Defense contracts involve national security considerations"),
    Industry.CRYPTO: (1.6, "Cryptocurrency sector has evolving regulatory landscape"),
    Industry.GAMING: (1.2, "Gaming industry has varying international regulations"),
    Industry.ECOMMERCE: (1.0, "E-commerce has moderate compliance requirements"),
    Industry.SAAS: (0.9, "SaaS typically has lower compliance complexity"),
    Industry.CONSULTING: (0.8, "Professional consulting has standard compliance patterns"),
}

# ─── Contract Duration (months) ────────────────────────────────────────────────
DURATION_TIERS: tuple[tuple[int, int, str], ...] = (
    (24, 2, "Long-term contracts (>2 years) increase regulatory change risk"),
    (12, 1, "Extended contracts require periodic compliance review"),
)

# ─── Flag and Compound Rules (name -> points, reason) ──────────────────────────
FLAG_RULES: dict[str, tuple[int, str]] = {
    "regulated_data": (2, "GDPR compliance required for EU data processing"),
    "regulated_financial": (1, "Financial data in EU requires additional privacy safeguards"),
    "independent_high_value": (1, "High-value independent contracts increase misclassification risk"),
    "intellectual_property": (1, "Intellectual property involvement requires IP protection measures"),
    "financial_data": (2, "Financial data handling requires enhanced security and compliance"),
    "security_clearance": (3, "Security clearance requirements involve national security compliance"),
    "public_sector": (1, "Public sector contracts require transparency and audit compliance"),
    "compound_independent_ip": (1, "High-value independent IP work creates compound compliance risks"),
    "compound_regulated_financial": (1, "EU financial data processing requires multiple regulatory frameworks"),
}

# ─── Default Configuration Values ──────────────────────────────────────────────
DEFAULT_CONFIG = {
    "storage": {
        "db_path": "~/.engagerisk/assessments.db",
    },
    "rate_limit": {
        "max_requests": 10,
        "window_seconds": 600,  # 10 minutes
    },
    "notifications": {
        "enabled": False,
        "high_risk_threshold": 8,
        "webhook_url": None,
        "rate_limit_per_hour": 10,
        "include_details": True,
    },
}

# ─── Config File Names ────────────────────────────────────────────────────────
CONFIG_FILE_NAME = ".engagerisk.yaml"
CONFIG_ENV_VAR = "ENGAGERISK_CONFIG"
WEBHOOK_ENV_VAR = "ENGAGERISK_WEBHOOK_URL"

# ─── Export ────────────────────────────────────────────────────────────────────
CSV_HEADERS: list[str] = [
    "ID",
    "Timestamp",
    "Email",
    "Country",
    "Contract Type",
    "Contract Value (USD)",
    "Data Processing",
    "Risk Score",
    "Risk Level",
    "Time to Result (ms)",
    "PDF Downloaded",
    "Feedback",
    "User Agent",
    "IP Last Octet",
    "Risk Reasons",
]

REASON_SEPARATOR = "|"
