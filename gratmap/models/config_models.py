from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the gratuity map engine.

These are the typed domain models the YAML loader in gratmap/config/loader.py
produces. Every model has working defaults that describe the "Controle de
Mapas" sheet as it is exported today, so the engine runs without a config file.
"""

__all__ = [
    "FieldSpec",
    "SheetLayoutConfig",
    "StatusRules",
    "CreateConfig",
    "DatabaseConfig",
    "BackendConfig",
    "AppConfig",
    "DEFAULT_FIELD_SPECS",
]


@dataclass(frozen=True)
class FieldSpec:
    """How one semantic field is located among the clean headers.

    Each candidate is a tuple of tokens; a header matches the candidate when it
    contains every token (case-insensitive). With ``exact`` the whole header has
    to equal the single token instead.
    """
    candidates: tuple[tuple[str, ...], ...]
    exact: bool = False
    fallback_index: int | None = None  # used only when name matching fails

    @staticmethod
    def of(*candidates: str | tuple[str, ...], exact: bool = False, fallback_index: int | None = None) -> FieldSpec:
        normalized = tuple((c,) if isinstance(c, str) else tuple(c) for c in candidates)
        return FieldSpec(candidates=normalized, exact=exact, fallback_index=fallback_index)


DEFAULT_FIELD_SPECS: dict[str, FieldSpec] = {
    "id": FieldSpec.of("mapa"),
    "evento": FieldSpec.of("evento"),
    "ult_dia_evento": FieldSpec.of("ult dia"),
    "valor": FieldSpec.of("valor"),
    "doc_autoriza": FieldSpec.of(("doc", "autoriza", "evento")),
    "nr_diex": FieldSpec.of("nr diex remessa"),
    "data_diex": FieldSpec.of("data diex remessa"),
    "observacao": FieldSpec.of("observ"),
    # Historical sheets carry no reliable title on these two columns
    "situacao": FieldSpec.of("situação", "situacao", exact=True, fallback_index=27),
    "om": FieldSpec.of("om", exact=True, fallback_index=28),
}


@dataclass(frozen=True)
class SheetLayoutConfig:
    """Where the header row lives and how semantic fields are found."""
    start_column: int = 0  # column holding the identifier / anchor
    anchor: str = "mapa"  # identifier column title, used to locate the header row
    default_header_row: int = 3  # 0-based grid index
    scan_window: int = 15  # rows scanned when the default row is not the header
    fields: dict[str, FieldSpec] = field(default_factory=lambda: dict(DEFAULT_FIELD_SPECS))
    # Computed / authoritative columns the editing surface never offers.
    # A trailing "*" matches by prefix.
    locked_fields: tuple[str, ...] = ("Situação", "Situacao", "OM", "Ano", "Dias*")


@dataclass(frozen=True)
class StatusRules:
    """Case-insensitive phrases that classify the free-text status column."""
    authorized: tuple[str, ...] = ("pagamento autorizado",)
    pending: tuple[str, ...] = (
        "aguardando autorização cml",
        "processo encaminhado esc sp",
        "encaminhado à 4ª bda",
        "encaminhado a 4ª bda",
        "encaminhado para a 4ª bda",
    )
    canceled: tuple[str, ...] = ("cancelado (dea)", "processo devolvido")


@dataclass(frozen=True)
class CreateConfig:
    """Conventions applied when a new map is created."""
    id_template: str = "{number}/{year} - 4 Bda/{unit}"
    status_forwarded: str = "Encaminhado para a 4ª Bda Inf L Mth."
    status_not_forwarded: str = "Não encaminhado à Bda"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback, environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    table: str = "map_data"


@dataclass(frozen=True)
class BackendConfig:
    """Which backing store receives create/update/delete requests."""
    kind: str = "none"  # none | http | postgres
    script_url: str | None = None
    collection: str = "Controle de Mapas"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    layout: SheetLayoutConfig = field(default_factory=SheetLayoutConfig)
    status_rules: StatusRules = field(default_factory=StatusRules)
    create: CreateConfig = field(default_factory=CreateConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    error_log_dir: str = "logs"
