# src/preload_hints/model.py
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from preload_hints.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

ChunkId = Union[int, str]


class UnsupportedFeatureError(Exception):
    """Raised when a chunk record cannot answer the initial-load query."""


class Chunk(BaseModel):
    """
    A unit of build output as reported by the build pipeline.

    Chunks link to the chunks that include them through `parents` (a list of
    chunk ids). Instances are frozen: the hint pipeline only ever reads them.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: ChunkId
    rendered_hash: str = Field(alias="hash")
    name: Optional[str] = None
    initial: Optional[bool] = None
    files: List[str] = Field(default_factory=list)
    parents: List[ChunkId] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def accept_manifest_keys(cls, data: Any) -> Any:
        """Maps the alternative keys found in build stats onto our fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "renderedHash" in data and "hash" not in data and "rendered_hash" not in data:
            data["hash"] = data.pop("renderedHash")
        if not data.get("name") and data.get("names"):
            data["name"] = data["names"][0]
        data.pop("names", None)
        return data

    def is_initial(self) -> bool:
        """Returns the initial-load flag, or raises if the record does not carry one."""
        if self.initial is None:
            raise UnsupportedFeatureError(f"Chunk {self.id!r} has no initial-load flag")
        return self.initial


class Compilation(BaseModel):
    """The chunk graph and output assets of one build."""
    model_config = ConfigDict(populate_by_name=True)

    chunks: List[Chunk] = Field(default_factory=list)
    assets: List[str] = Field(default_factory=list)
    public_path: str = Field(default="", alias="publicPath")

    @field_validator("assets", mode="before")
    @classmethod
    def normalize_assets(cls, v):
        # Stats files list assets either as names or as {"name": ...} records.
        if isinstance(v, dict):
            return list(v.keys())
        if isinstance(v, list):
            return [a["name"] if isinstance(a, dict) else a for a in v]
        return v

    @field_validator("public_path", mode="before")
    @classmethod
    def default_public_path(cls, v):
        return v or ""


class ChunkReference(BaseModel):
    """A chunk the HTML document is known to reference directly."""
    hash: str
    entry: Optional[str] = None


class HtmlPluginData(BaseModel):
    """The HTML buffer of one generated document and the chunks it includes."""
    html: str
    chunks: Dict[str, ChunkReference] = Field(default_factory=dict)
    output_name: str = "index.html"

    @property
    def root_hashes(self) -> List[str]:
        return [ref.hash for ref in self.chunks.values()]


# --- "as" policy variants ---


class UnsetAs(BaseModel):
    """No `as` option: the resource type is inferred from the file suffix."""
    kind: str = "unset"


class StaticAs(BaseModel):
    """A fixed `as` value used for every preloaded file."""
    kind: str = "static"
    value: str


class ComputedAs(BaseModel):
    """A classifier called with each href to obtain its `as` value."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: str = "computed"
    classifier: Callable[[str], str]


AsPolicy = Union[UnsetAs, StaticAs, ComputedAs]


def as_policy_from_option(value: Any) -> AsPolicy:
    """Builds the `as` variant for a raw option value."""
    if isinstance(value, (UnsetAs, StaticAs, ComputedAs)):
        return value
    if not value:
        return UnsetAs()
    if callable(value):
        return ComputedAs(classifier=value)
    return StaticAs(value=str(value))


def _compile_patterns(values: Any) -> Any:
    if values is None:
        return None
    if isinstance(values, (str, re.Pattern)):
        values = [values]
    compiled = []
    for v in values:
        if isinstance(v, re.Pattern):
            compiled.append(v)
            continue
        try:
            compiled.append(re.compile(v))
        except re.error as e:
            raise ValueError(f"Invalid file pattern {v!r}: {e}") from e
    return compiled


class PreloadOptions(BaseModel):
    """
    Policy controlling which files get a hint and how the hint is rendered.

    Recognized keys are `rel`, `include`, `as`, `fileWhitelist` and
    `fileBlacklist`; any other key is ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", arbitrary_types_allowed=True)

    rel: str = "preload"
    include: Any = "asyncChunks"
    as_policy: AsPolicy = Field(default_factory=UnsetAs, alias="as")
    file_whitelist: Optional[List[re.Pattern]] = Field(default=None, alias="fileWhitelist")
    file_blacklist: List[re.Pattern] = Field(
        default_factory=lambda: [re.compile(r"\.map")], alias="fileBlacklist"
    )

    @field_validator("as_policy", mode="before")
    @classmethod
    def build_as_policy(cls, v):
        return as_policy_from_option(v)

    @field_validator("file_whitelist", mode="before")
    @classmethod
    def compile_whitelist(cls, v):
        return _compile_patterns(v)

    @field_validator("file_blacklist", mode="before")
    @classmethod
    def compile_blacklist(cls, v):
        compiled = _compile_patterns(v)
        return [] if compiled is None else compiled

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]] = None) -> "PreloadOptions":
        """
        Merges the `preload` defaults from settings.json with user overrides.
        Overrides win key by key.
        """
        merged: Dict[str, Any] = dict(config_manager.get_nested("preload", {}) or {})
        merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
        logger.debug("Effective preload options keys: %s", sorted(merged.keys()))
        return cls(**merged)


class HintRecord(BaseModel):
    """One rendered resource hint."""
    rel: str
    href: str
    as_value: Optional[str] = None
    crossorigin: bool = False
