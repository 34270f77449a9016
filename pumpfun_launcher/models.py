"""
Data models for the token launch pipeline
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_INITIAL_LIQUIDITY_SOL = 0.0001
DEFAULT_SLIPPAGE_BPS = 5
DEFAULT_PRIORITY_FEE = 0.00005

SOCIAL_FIELDS = ("twitter", "telegram", "website")


class LaunchOptions(BaseModel):
    """Optional parameters for a token launch"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    initial_liquidity_sol: Optional[float] = Field(
        None, alias="initialLiquiditySOL", ge=0, description="Initial buy in SOL"
    )
    slippage_bps: Optional[int] = Field(None, alias="slippageBps", ge=0, description="Slippage")
    priority_fee: Optional[float] = Field(None, alias="priorityFee", ge=0, description="Priority fee in SOL")
    twitter: Optional[str] = Field(None, description="Twitter handle or URL")
    telegram: Optional[str] = Field(None, description="Telegram handle or URL")
    website: Optional[str] = Field(None, description="Project website")

    @property
    def amount(self) -> float:
        return self.initial_liquidity_sol or DEFAULT_INITIAL_LIQUIDITY_SOL

    @property
    def slippage(self) -> int:
        return self.slippage_bps or DEFAULT_SLIPPAGE_BPS

    @property
    def fee(self) -> float:
        return self.priority_fee or DEFAULT_PRIORITY_FEE


@dataclass(frozen=True)
class TokenMetadata:
    """
    Descriptive fields submitted to the metadata host alongside the image.

    Social links are only rendered when they hold a value, and the rendered
    field order is fixed so request bodies are deterministic.
    """
    name: str
    symbol: str
    description: str
    show_name: bool = True
    socials: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def __post_init__(self):
        for label, value in (("name", self.name), ("symbol", self.symbol), ("description", self.description)):
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Token {label} must be a non-empty string")

    @classmethod
    def from_options(cls, name: str, symbol: str, description: str,
                     options: Optional[LaunchOptions] = None) -> "TokenMetadata":
        socials = []
        if options is not None:
            for key in SOCIAL_FIELDS:
                value = getattr(options, key)
                if value:
                    socials.append((key, value))
        return cls(name=name, symbol=symbol, description=description, socials=tuple(socials))

    def form_fields(self) -> List[Tuple[str, str]]:
        fields = [
            ("name", self.name),
            ("symbol", self.symbol),
            ("description", self.description),
            ("showName", "true" if self.show_name else "false"),
        ]
        fields.extend(self.socials)
        return fields


class MetadataResponse(BaseModel):
    """
    Response of the metadata host: pinned metadata and its URI

    ``metadata`` is kept as the host returned it, but must carry a non-empty
    ``name`` and ``symbol`` since both are echoed into the create payload.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    metadata: Dict[str, Any]
    metadata_uri: str = Field(..., alias="metadataUri", min_length=1)

    @field_validator("metadata")
    @classmethod
    def require_name_and_symbol(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        missing = [key for key in ("name", "symbol") if not isinstance(value.get(key), str) or not value[key]]
        if missing:
            raise ValueError(f"pinned metadata is missing {', '.join(missing)}")
        return value

    @property
    def name(self) -> str:
        return self.metadata["name"]

    @property
    def symbol(self) -> str:
        return self.metadata["symbol"]


@dataclass(frozen=True)
class LaunchResult:
    signature: str
    mint: str
    metadata_uri: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "signature": self.signature,
            "mint": self.mint,
            "metadataUri": self.metadata_uri,
        }
