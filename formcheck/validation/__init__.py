"""Profile evaluation for formcheck.

This package evaluates input records against declarative profiles: it
filters values, decides which fields are required, checks constraints and
classifies every field as valid, missing, invalid or unknown.
"""

# Batch evaluation
from formcheck.validation.batch import evaluate_frame, read_records, summarize, write_report

# Profile sources
from formcheck.validation.declarative import FormValidator, ProfileStore, load_profiles

# Engine
from formcheck.validation.engine import ConstraintContext, Engine, evaluate

# Messages
from formcheck.validation.messages import MessageConfig

# Profiles
from formcheck.validation.profile import ConstraintSpec, Literal, Profile, RequireSome

# Registry
from formcheck.validation.registry import Registry, default_registry

# Results
from formcheck.validation.result import Results

__all__ = [
    # Batch evaluation
    "evaluate_frame",
    "read_records",
    "summarize",
    "write_report",
    # Profile sources
    "FormValidator",
    "ProfileStore",
    "load_profiles",
    # Engine
    "ConstraintContext",
    "Engine",
    "evaluate",
    # Messages
    "MessageConfig",
    # Profiles
    "ConstraintSpec",
    "Literal",
    "Profile",
    "RequireSome",
    # Registry
    "Registry",
    "default_registry",
    # Results
    "Results",
]
