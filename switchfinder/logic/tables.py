"""Single source of truth for the finder's lookup tables.

Duty order and the relaxation ladder are fixed. Environment ratings, relaxation
messages and browse keywords have config-aware getters that fall back to the
hardcoded values for tests and bootstrapping.
"""

from .catalog import DutyClass, SHIELD_FEATURE

# =============================================================================
# MATCHING TABLES
# =============================================================================

# Environments that accept any IP rating
UNCONSTRAINED_ENVIRONMENTS = frozenset({"", "dry", "any"})

# Environment -> accepted IP ratings
ENVIRONMENT_IP_RATINGS = {
    "damp": frozenset({"IP56", "IP68"}),
    "wet": frozenset({"IP68"}),
}

# Duty severity rank, heavy first; unknown duty sorts after all of these
DUTY_RANK = {DutyClass.HEAVY.value: 0, DutyClass.MEDIUM.value: 1, DutyClass.LIGHT.value: 2}
UNKNOWN_DUTY_RANK = 3

GUARD_VALUES = ("yes", "no")

# Feature ids owned by another wizard step; the features step never offers them
FEATURE_STEP_EXCLUDED = frozenset({SHIELD_FEATURE})

# Facets dropped in this order when nothing matches; application is never relaxed
RELAXATION_ORDER = (
    "features",
    "environment",
    "duty",
    "material",
    "connection",
    "guard",
    "action",
    "technology",
)
RELAXED_ALL = "all"

SORT_MODES = ("relevance", "duty", "ip")
DEFAULT_SORT_MODE = "relevance"

# =============================================================================
# HARDCODED FALLBACKS (used when config isn't loaded or lacks these fields)
# =============================================================================

RELAXED_MESSAGES = {
    "features": "No exact matches with your selected features, but these products match all other criteria:",
    "environment": "No exact matches for your environment rating, but these products match your other requirements:",
    "duty": "No exact matches for your duty class, but these products match your other requirements:",
    "material": "No exact matches for your material preference, but these products match your other criteria:",
    "connection": "No exact matches for your connection type, but these products match your other criteria:",
    "guard": "No exact matches for your guard preference, but these products match your other criteria:",
    "action": "No exact matches for your action type, but these products match your application and technology:",
    "technology": "No exact matches for your technology type, but these products are compatible with your application:",
    "all": "Here are all products available for your application:",
}

# Connector wording that means the switch ships with a cord attached
CORDED_KEYWORDS = ("pre-wired", "prong", "plug")
# Connector wording that means the customer wires it
CORDLESS_KEYWORDS = ("screw", "quick", "terminal")


# =============================================================================
# CONFIG-AWARE GETTERS
# =============================================================================

def _loaded_config():
    from switchfinder.config_loader import get_loaded_config
    return get_loaded_config()


def get_relaxed_message(tag: str) -> str:
    """Message shown above an alternative result set."""
    cfg = _loaded_config()
    if cfg and tag in cfg.relaxed_messages:
        return cfg.relaxed_messages[tag]
    return RELAXED_MESSAGES.get(tag, RELAXED_MESSAGES[RELAXED_ALL])


def get_default_sort_mode() -> str:
    cfg = _loaded_config()
    if cfg and cfg.default_sort_mode in SORT_MODES:
        return cfg.default_sort_mode
    return DEFAULT_SORT_MODE


def get_connector_keywords() -> tuple[tuple[str, ...], tuple[str, ...]]:
    """(corded, cordless) connector keywords for the browse filter."""
    cfg = _loaded_config()
    if cfg and cfg.corded_keywords and cfg.cordless_keywords:
        return tuple(cfg.corded_keywords), tuple(cfg.cordless_keywords)
    return CORDED_KEYWORDS, CORDLESS_KEYWORDS


def get_environment_ip_ratings() -> dict:
    """Constrained environment -> accepted IP ratings."""
    cfg = _loaded_config()
    if cfg and cfg.environment_ip_ratings:
        return cfg.environment_ip_ratings
    return ENVIRONMENT_IP_RATINGS


def get_unconstrained_environments() -> frozenset:
    """Environments that accept any rating; the unset value is always among them."""
    cfg = _loaded_config()
    if cfg and cfg.unconstrained_environments:
        return cfg.unconstrained_environments | {""}
    return UNCONSTRAINED_ENVIRONMENTS
