"""transync - Keep translated Markdown documents in sync with their source.

Detects what changed between two revisions of a source document and
re-projects those changes onto an independently maintained translation,
leaving untouched content as it is.
"""

__version__ = "0.1.0"

from transync.applier import PatchApplier
from transync.config import SyncSettings, get_settings
from transync.decomposer import BlockDecomposer, UnitContext, slugify
from transync.differ import StructuralDiffer, diff
from transync.exceptions import (
    APIError,
    ApplyError,
    AuthenticationError,
    BadRequestError,
    ParseError,
    RateLimitError,
    SyncError,
    TranslationConnectionError,
    TranslationError,
)
from transync.glossary import Glossary, GlossaryTerm, load_glossary
from transync.heading_map import (
    extract_heading_map,
    inject_heading_map,
    lookup,
    serialize_heading_map,
    update,
)
from transync.languages import (
    LanguageConfig,
    get_language_config,
    is_language_supported,
    validate_language_code,
)
from transync.locator import TargetLocator
from transync.observer import LoggingObserver, MatchObserver, RecordingObserver, setup_logging
from transync.sections import (
    find_section_by_id,
    parse_components,
    parse_sections,
    validate,
)
from transync.sync import FileSynchronizer
from transync.translator import (
    AnthropicTranslator,
    StaticTranslator,
    TranslationRequest,
    Translator,
)
from transync.types import (
    Change,
    ChangeKind,
    DocumentComponents,
    InsertionHint,
    Mapping,
    ParsedDocument,
    Patch,
    Section,
    Strategy,
    SyncResult,
    Unit,
    UnitKind,
)

__all__ = [
    # Types
    "Change",
    "ChangeKind",
    "DocumentComponents",
    "InsertionHint",
    "Mapping",
    "ParsedDocument",
    "Patch",
    "Section",
    "Strategy",
    "SyncResult",
    "Unit",
    "UnitKind",
    # Engine
    "BlockDecomposer",
    "UnitContext",
    "slugify",
    "StructuralDiffer",
    "diff",
    "TargetLocator",
    "PatchApplier",
    "FileSynchronizer",
    # Sections and heading alignment
    "parse_sections",
    "parse_components",
    "validate",
    "find_section_by_id",
    "extract_heading_map",
    "inject_heading_map",
    "lookup",
    "serialize_heading_map",
    "update",
    # Translation
    "Translator",
    "TranslationRequest",
    "AnthropicTranslator",
    "StaticTranslator",
    "Glossary",
    "GlossaryTerm",
    "load_glossary",
    "LanguageConfig",
    "get_language_config",
    "is_language_supported",
    "validate_language_code",
    # Configuration and telemetry
    "SyncSettings",
    "get_settings",
    "MatchObserver",
    "LoggingObserver",
    "RecordingObserver",
    "setup_logging",
    # Exceptions
    "SyncError",
    "ParseError",
    "TranslationError",
    "AuthenticationError",
    "RateLimitError",
    "BadRequestError",
    "APIError",
    "TranslationConnectionError",
    "ApplyError",
]
