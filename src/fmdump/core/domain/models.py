"""Domain models (Pydantic v2).

Each record kind stored in the fiscal memory gets one model. Field bounds
mirror the width of the field on the wire, nothing more: business plausibility
(VAT percentages, sequence gaps) is not checked here.

Notes:
- A timestamp is either `None` (all-sentinel bytes on flash) or a
  `FiscalDateTime`. Partially sentinel values are kept as-is.
- The four change counters of `SettlementReport` are derived data. The encoder
  always recomputes them, whatever the model holds.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator
from pydantic.config import ConfigDict

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF

HARDWARE_ID_SIZE = 16

MAX_FM_NUMBERS = 8
MAX_TAX_IDS = 8
MAX_VAT_RATE_CHANGES = 32
MAX_RAM_RESETS = 100
MAX_SETTLEMENT_REPORTS = 4500
MAX_JOURNAL_RECORDS = 20


class RecordKind(str, Enum):
    """Record kinds stored in the fiscal memory, in image order."""

    SERIAL = "serial"
    FISCAL_MODE_START = "fiscal_mode_start"
    FM_NUMBER = "fm_number"
    TAX_ID = "tax_id"
    VAT_RATE_CHANGE = "vat_rate_change"
    RAM_RESET = "ram_reset"
    SETTLEMENT_REPORT = "settlement_report"
    JOURNAL_OPEN = "journal_open"
    JOURNAL_CLOSE = "journal_close"


class WarningKind(str, Enum):
    """Non-fatal anomalies detected while decoding."""

    CHECKSUM_MISMATCH = "checksum"
    FUTURE_DATE = "future-date"


class FiscalDateTime(BaseModel):
    """Packed 8-byte timestamp, always UTC.

    `tick` counts hundredths of a second. Values are bounded only by their
    byte width so odd stored values (month 0, hour 0xFF...) survive a
    round-trip unchanged.
    """

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=0, le=U16_MAX)
    month: int = Field(..., ge=0, le=U8_MAX)
    day: int = Field(..., ge=0, le=U8_MAX)
    hour: int = Field(default=0, ge=0, le=U8_MAX)
    minute: int = Field(default=0, ge=0, le=U8_MAX)
    second: int = Field(default=0, ge=0, le=U8_MAX)
    tick: int = Field(default=0, ge=0, le=U8_MAX, description="Unidades de 10 ms.")

    @classmethod
    def from_datetime(cls, value: datetime) -> "FiscalDateTime":
        """Pack a datetime; naive values are taken as UTC."""

        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return cls(
            year=value.year,
            month=value.month,
            day=value.day,
            hour=value.hour,
            minute=value.minute,
            second=value.second,
            tick=value.microsecond // 10_000,
        )

    def to_datetime(self) -> datetime | None:
        """Resolve the UTC instant, or `None` when it cannot be represented.

        Out-of-range components roll over into the next larger unit (day 32
        of January is February 1st), month 0 counts as January and the
        millisecond part is capped at 999.
        """

        month_index = max(0, self.month - 1)
        year = self.year + month_index // 12
        month = month_index % 12 + 1
        try:
            base = datetime(year, month, 1, tzinfo=timezone.utc)
            return base + timedelta(
                days=self.day - 1,
                hours=self.hour,
                minutes=self.minute,
                seconds=self.second,
                milliseconds=min(999, self.tick * 10),
            )
        except (ValueError, OverflowError):
            return None

    def isoformat(self) -> str | None:
        instant = self.to_datetime()
        if instant is None:
            return None
        return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime | None:
    """Parse ISO-8601 text, accepting a trailing `Z` on every Python version."""

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def coerce_fiscal_datetime(value: Any) -> Any:
    """Accept `datetime` and ISO-8601 strings wherever a timestamp is expected.

    Unparseable strings become `None` (absent). Anything else is handed to
    Pydantic untouched.
    """

    if isinstance(value, str):
        value = parse_iso_datetime(value)
        if value is None:
            return None
    if isinstance(value, datetime):
        return FiscalDateTime.from_datetime(value)
    return value


class _TimestampedRecord(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    date_time: FiscalDateTime | None = Field(
        default=None,
        description="Momento del registro (UTC); None si el flash no fue escrito.",
    )

    @field_validator("date_time", mode="before")
    @classmethod
    def _coerce_date_time(cls, value: Any) -> Any:
        return coerce_fiscal_datetime(value)


class SerialRecord(_TimestampedRecord):
    serial_number: str = Field(default="", description="Número de serie del equipo (10 bytes cp1251).")


class FiscalModeStart(_TimestampedRecord):
    """Moment the register entered fiscal mode."""


class FMNumberRecord(_TimestampedRecord):
    fm_number: str = Field(default="", description="Número del módulo de memoria fiscal.")


class TaxIdRecord(_TimestampedRecord):
    tax_type: int = Field(default=0, ge=0, le=U8_MAX, description="Tipo de identificador fiscal.")
    tax_number: str = Field(default="", description="Identificador fiscal (12 bytes cp1251).")


class VatRateSet(BaseModel):
    """One u16 value per VAT bucket A-H."""

    model_config = ConfigDict(validate_assignment=True)

    a: int = Field(default=0, ge=0, le=U16_MAX)
    b: int = Field(default=0, ge=0, le=U16_MAX)
    c: int = Field(default=0, ge=0, le=U16_MAX)
    d: int = Field(default=0, ge=0, le=U16_MAX)
    e: int = Field(default=0, ge=0, le=U16_MAX)
    f: int = Field(default=0, ge=0, le=U16_MAX)
    g: int = Field(default=0, ge=0, le=U16_MAX)
    h: int = Field(default=0, ge=0, le=U16_MAX)


class VatAmounts(BaseModel):
    """One u64 accumulator per VAT bucket A-H."""

    model_config = ConfigDict(validate_assignment=True)

    a: int = Field(default=0, ge=0, le=U64_MAX)
    b: int = Field(default=0, ge=0, le=U64_MAX)
    c: int = Field(default=0, ge=0, le=U64_MAX)
    d: int = Field(default=0, ge=0, le=U64_MAX)
    e: int = Field(default=0, ge=0, le=U64_MAX)
    f: int = Field(default=0, ge=0, le=U64_MAX)
    g: int = Field(default=0, ge=0, le=U64_MAX)
    h: int = Field(default=0, ge=0, le=U64_MAX)


VAT_BUCKETS = ("a", "b", "c", "d", "e", "f", "g", "h")


class VatRateChange(_TimestampedRecord):
    rates: VatRateSet = Field(default_factory=VatRateSet)
    cumulative_rates: VatRateSet = Field(
        default_factory=VatRateSet,
        description="Tasas 'zbir' (acumulativas) por grupo.",
    )
    next_settlement_number: int = Field(default=0, ge=0, le=U16_MAX)
    vat_excluded: int = Field(default=0, ge=0, le=U8_MAX)
    decimal_point: int = Field(default=0, ge=0, le=U8_MAX)


class RamResetRecord(_TimestampedRecord):
    next_settlement_number: int = Field(default=0, ge=0, le=U16_MAX)
    flag: int = Field(default=0, ge=0, le=U8_MAX)


SETTLEMENT_TOTAL_FAMILIES = (
    "obligation",
    "obligation_void",
    "sum",
    "sum_void",
    "cumulative",
    "cumulative_void",
)


class SettlementReport(_TimestampedRecord):
    """End-of-day closing ("Z" report).

    `fm_number_changes`, `tax_id_changes`, `vat_rate_changes` and
    `ram_resets` are derived from the ancillary lists at encode time; any value
    set here is discarded by the encoder.
    """

    number: int = Field(default=0, ge=0, le=U16_MAX, description="Número secuencial del reporte Z.")
    fm_number_changes: int = Field(default=0, ge=0, le=U8_MAX)
    tax_id_changes: int = Field(default=0, ge=0, le=U8_MAX)
    vat_rate_changes: int = Field(default=0, ge=0, le=U8_MAX)
    ram_resets: int = Field(default=0, ge=0, le=U8_MAX)
    last_document: int = Field(default=0, ge=0, le=U32_MAX)
    last_fiscal_document: int = Field(default=0, ge=0, le=U32_MAX)
    last_void_document: int = Field(default=0, ge=0, le=U32_MAX)
    fiscal_count: int = Field(default=0, ge=0, le=U16_MAX)
    void_count: int = Field(default=0, ge=0, le=U16_MAX)

    obligation: VatAmounts = Field(default_factory=VatAmounts)
    obligation_void: VatAmounts = Field(default_factory=VatAmounts)
    sum: VatAmounts = Field(default_factory=VatAmounts)
    sum_void: VatAmounts = Field(default_factory=VatAmounts)
    cumulative: VatAmounts = Field(default_factory=VatAmounts)
    cumulative_void: VatAmounts = Field(default_factory=VatAmounts)


class JournalOpen(_TimestampedRecord):
    last_record: int = Field(default=0, ge=0, le=U32_MAX, description="Último registro al abrir.")
    last_settlement: int = Field(default=0, ge=0, le=U16_MAX, description="Último reporte Z al abrir.")


class JournalClose(_TimestampedRecord):
    last_record: int = Field(default=0, ge=0, le=U32_MAX, description="Último registro al cerrar.")
    last_settlement: int = Field(default=0, ge=0, le=U16_MAX, description="Último reporte Z al cerrar.")
    lost_or_corrupted: int = Field(default=0, ge=0, le=U8_MAX)


class DecodeWarning(BaseModel):
    """Diagnostic produced while decoding; never blocks the decode."""

    kind: WarningKind
    record_kind: RecordKind
    index: int = Field(..., ge=0, description="Índice del slot dentro de su región.")
    byte_offset: int = Field(..., ge=0)
    message: str


class FiscalDump(BaseModel):
    """Agregado raíz: el contenido completo de una memoria fiscal."""

    model_config = ConfigDict(validate_assignment=True)

    serial: SerialRecord | None = None
    fiscal_mode_start: FiscalModeStart | None = None
    fm_numbers: list[FMNumberRecord] = Field(default_factory=list, max_length=MAX_FM_NUMBERS)
    tax_ids: list[TaxIdRecord] = Field(default_factory=list, max_length=MAX_TAX_IDS)
    vat_rate_changes: list[VatRateChange] = Field(default_factory=list, max_length=MAX_VAT_RATE_CHANGES)
    ram_resets: list[RamResetRecord] = Field(default_factory=list, max_length=MAX_RAM_RESETS)
    settlement_reports: list[SettlementReport] = Field(
        default_factory=list,
        max_length=MAX_SETTLEMENT_REPORTS,
    )
    journal_opens: list[JournalOpen] = Field(default_factory=list, max_length=MAX_JOURNAL_RECORDS)
    journal_closes: list[JournalClose] = Field(default_factory=list, max_length=MAX_JOURNAL_RECORDS)
    hardware_id: bytes = Field(
        default=b"\xff" * HARDWARE_ID_SIZE,
        min_length=HARDWARE_ID_SIZE,
        max_length=HARDWARE_ID_SIZE,
        description="Identificador del CPU; solo lectura, el encoder nunca lo escribe.",
    )
    warnings: list[DecodeWarning] = Field(default_factory=list)

    @field_validator("hardware_id", mode="before")
    @classmethod
    def _hardware_id_from_hex(cls, value: Any) -> Any:
        if isinstance(value, str):
            return bytes.fromhex(value)
        if isinstance(value, list):
            return bytes(value)
        return value

    @field_serializer("hardware_id", when_used="json")
    def _hardware_id_to_hex(self, value: bytes) -> str:
        return value.hex()
