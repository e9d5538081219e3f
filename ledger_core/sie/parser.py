"""
SIE Parser

Parses SIE 4 text (the Swedish bookkeeping interchange format) into an
SIEDocument in a single pass, line by line.

DESIGN DECISIONS:

1. STRUCTURE IS STRICT. A line with the wrong field count, a bad
   number/date, an unterminated quote, or an incomplete verification
   block raises MalformedSIE with its 1-based line number. Parsing
   stops at the first defect; there is no partial document, because a
   half-imported ledger silently corrupts tax calculations.

2. CONTENT IS LOSSLESS. An unbalanced verification is returned and
   flagged (SIEVerification.is_balanced), never rejected here. The
   balance law is enforced when the caller admits it into the ledger.

3. UNKNOWN TAGS ARE SKIPPED, so newer SIE writers do not break imports.

Verification blocks:

    #VER A 1 20240115 "Försäljning"
    {
    #TRANS 1930 {} 1250,00
    #TRANS 3001 {} -1000,00
    #TRANS 2611 {} -250,00
    }

A block ends at its closing brace, at the next #VER, or (for writers
that omit braces) at the next non-transaction tag or end of input.
A verification needs at least two transaction rows; fewer is an
incomplete block and is reported on its #VER line.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from ledger_core.config import get_settings
from ledger_core.errors import MalformedSIE
from ledger_core.models.account import Account, AccountCategory
from ledger_core.models.sie import (
    BalanceKind,
    FiscalYear,
    SIEBalance,
    SIEDocument,
    SIEMetadata,
    SIEVerification,
)
from ledger_core.models.verification import JournalEntryLine
from ledger_core.sie.tokenizer import Token, tokenize


logger = structlog.get_logger(__name__)

MIN_VERIFICATION_ROWS = 2

# #KTYP letters
ACCOUNT_TYPES = {
    "T": AccountCategory.ASSET,
    "S": AccountCategory.LIABILITY,
    "I": AccountCategory.REVENUE,
    "K": AccountCategory.EXPENSE,
}

BALANCE_TAGS = {
    "#IB": BalanceKind.OPENING,
    "#UB": BalanceKind.CLOSING,
    "#RES": BalanceKind.RESULT,
}

# Supplementary (#RTRANS) and removed (#BTRANS) rows. An #RTRANS is
# always followed by an identical #TRANS, so both are skipped.
SKIPPED_ROW_TAGS = {"#RTRANS", "#BTRANS"}


class _OpenVerification:
    """A verification whose rows are still being read."""

    def __init__(
        self,
        series: str,
        number: Optional[int],
        day: date,
        description: str,
        registered_on: Optional[date],
        line_number: int,
    ):
        self.series = series
        self.number = number
        self.day = day
        self.description = description
        self.registered_on = registered_on
        self.line_number = line_number
        self.rows: list[JournalEntryLine] = []
        self.in_block = False

    @property
    def reference(self) -> str:
        return f"{self.series}{self.number if self.number is not None else ''}"


class SIEParser:
    """
    Single-use SIE parser.

    Usage:
        document = SIEParser().parse(text)
    """

    def __init__(self):
        self._accounts: dict[str, dict] = {}
        self._account_types: dict[str, AccountCategory] = {}
        self._sru_codes: dict[str, str] = {}
        self._verifications: list[SIEVerification] = []
        self._balances: list[SIEBalance] = []
        self._fiscal_years: list[FiscalYear] = []
        self._metadata = SIEMetadata()
        self._current: Optional[_OpenVerification] = None
        self._skipped_tags: dict[str, int] = {}

        self._handlers: dict[str, Callable[[list[Token], int, str], None]] = {
            "#KONTO": self._handle_konto,
            "#KTYP": self._handle_ktyp,
            "#SRU": self._handle_sru,
            "#IB": self._handle_balance,
            "#UB": self._handle_balance,
            "#RES": self._handle_balance,
            "#RAR": self._handle_rar,
            "#VER": self._handle_ver,
            "#TRANS": self._handle_trans,
            "#FLAGGA": self._handle_metadata,
            "#FORMAT": self._handle_metadata,
            "#SIETYP": self._handle_metadata,
            "#PROGRAM": self._handle_metadata,
            "#GEN": self._handle_metadata,
            "#FNAMN": self._handle_metadata,
            "#ORGNR": self._handle_metadata,
            "#VALUTA": self._handle_metadata,
            "#KPTYP": self._handle_metadata,
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def parse(self, text: str) -> SIEDocument:
        """
        Parse a complete SIE text.

        Raises:
            MalformedSIE: At the first structural defect.
        """
        if text.startswith("\ufeff"):
            text = text[1:]

        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            self._parse_line(line, line_number)

        self._finish()

        document = SIEDocument(
            accounts=self._build_accounts(),
            verifications=self._verifications,
            balances=self._balances,
            fiscal_years=self._fiscal_years,
            metadata=self._metadata,
        )

        logger.info(
            "sie_parsed",
            accounts=len(document.accounts),
            verifications=len(document.verifications),
            balances=len(document.balances),
            unbalanced=len(document.unbalanced_verifications),
            skipped_tags=self._skipped_tags,
        )
        return document

    def _parse_line(self, line: str, line_number: int) -> None:
        if line == "{":
            self._open_block(line, line_number)
            return
        if line == "}":
            self._close_block(line, line_number)
            return
        if not line.startswith("#"):
            # Not a tagged line; SIE has no free text outside tags
            self._skip("<untagged>")
            return

        tokens = tokenize(line, line_number)
        tag = tokens[0].value.upper()
        fields = tokens[1:]

        if tag in ("#TRANS", *SKIPPED_ROW_TAGS):
            if self._current is None:
                raise MalformedSIE(line_number, f"{tag} outside a verification", line)
        elif self._current is not None:
            if self._current.in_block and tag != "#VER":
                if tag in self._handlers:
                    raise MalformedSIE(line_number, f"{tag} inside a verification block", line)
                self._skip(tag)
                return
            # The next #VER ends any open verification; a brace-less
            # one also ends at any other tag
            self._close_verification()

        if tag in SKIPPED_ROW_TAGS:
            self._skip(tag)
            return

        handler = self._handlers.get(tag)
        if handler is None:
            self._skip(tag)
            return
        handler(fields, line_number, line)

    def _finish(self) -> None:
        if self._current is None:
            return
        if self._current.in_block:
            raise MalformedSIE(
                self._current.line_number,
                f"verification {self._current.reference} block is not closed",
            )
        self._close_verification()

    def _skip(self, tag: str) -> None:
        self._skipped_tags[tag] = self._skipped_tags.get(tag, 0) + 1

    # ------------------------------------------------------------------
    # Verification blocks
    # ------------------------------------------------------------------

    def _open_block(self, line: str, line_number: int) -> None:
        current = self._current
        if current is None or current.in_block or current.rows:
            raise MalformedSIE(line_number, "'{' without a preceding #VER", line)
        current.in_block = True

    def _close_block(self, line: str, line_number: int) -> None:
        if self._current is None or not self._current.in_block:
            raise MalformedSIE(line_number, "unmatched '}'", line)
        self._close_verification()

    def _close_verification(self) -> None:
        current = self._current
        self._current = None

        if len(current.rows) < MIN_VERIFICATION_ROWS:
            raise MalformedSIE(
                current.line_number,
                f"verification {current.reference} is incomplete: "
                f"{len(current.rows)} transaction row(s), "
                f"at least {MIN_VERIFICATION_ROWS} required",
            )

        verification = SIEVerification(
            series=current.series,
            number=current.number,
            date=current.day,
            description=current.description,
            rows=current.rows,
            registered_on=current.registered_on,
            line_number=current.line_number,
        )
        if not verification.is_balanced:
            logger.warning(
                "sie_unbalanced_verification",
                reference=verification.reference,
                line_number=verification.line_number,
                debit=str(verification.total_debit),
                credit=str(verification.total_credit),
            )
        self._verifications.append(verification)

    def _handle_ver(self, fields: list[Token], line_number: int, line: str) -> None:
        # #VER series verno verdate [vertext] [regdate] [sign]
        _require(fields, 3, "#VER", line_number, line)

        number_text = fields[1].value.strip()
        number = _parse_int(number_text, line_number, line, "verification number") if number_text else None
        if number is not None and number < 1:
            raise MalformedSIE(line_number, f"invalid verification number {number_text!r}", line)

        registered_on = None
        if len(fields) > 4 and fields[4].value:
            registered_on = _parse_date(fields[4].value, line_number, line)

        self._current = _OpenVerification(
            series=fields[0].value.strip() or "A",
            number=number,
            day=_parse_date(fields[2].value, line_number, line),
            description=fields[3].value if len(fields) > 3 else "",
            registered_on=registered_on,
            line_number=line_number,
        )

    def _handle_trans(self, fields: list[Token], line_number: int, line: str) -> None:
        # #TRANS account {objects} amount [transdate] [transtext] [quantity] [sign]
        _require(fields, 2, "#TRANS", line_number, line)

        account = fields[0].value
        rest = fields[1:]
        if rest[0].is_objects:
            rest = rest[1:]
        if not rest:
            raise MalformedSIE(line_number, "#TRANS is missing its amount", line)

        amount = _parse_amount(rest[0].value, line_number, line)
        text = rest[2].value if len(rest) > 2 and rest[2].value else None

        try:
            row = JournalEntryLine(
                account=account,
                description=text,
                debit=amount if amount > 0 else Decimal("0"),
                credit=-amount if amount < 0 else Decimal("0"),
            )
        except ValueError:
            raise MalformedSIE(line_number, f"invalid transaction row for account {account!r}", line)

        self._current.rows.append(row)

    # ------------------------------------------------------------------
    # Accounts, balances, fiscal years
    # ------------------------------------------------------------------

    def _handle_konto(self, fields: list[Token], line_number: int, line: str) -> None:
        _require(fields, 2, "#KONTO", line_number, line)
        code = _parse_account_code(fields[0].value, line_number, line)
        name = fields[1].value.strip() or f"Konto {code}"
        self._accounts[code] = {"code": code, "name": name}

    def _handle_ktyp(self, fields: list[Token], line_number: int, line: str) -> None:
        _require(fields, 2, "#KTYP", line_number, line)
        code = _parse_account_code(fields[0].value, line_number, line)
        letter = fields[1].value.strip().upper()
        if letter not in ACCOUNT_TYPES:
            raise MalformedSIE(line_number, f"unknown account type {letter!r}", line)
        self._account_types[code] = ACCOUNT_TYPES[letter]

    def _handle_sru(self, fields: list[Token], line_number: int, line: str) -> None:
        _require(fields, 2, "#SRU", line_number, line)
        code = _parse_account_code(fields[0].value, line_number, line)
        self._sru_codes[code] = fields[1].value.strip()

    def _handle_balance(self, fields: list[Token], line_number: int, line: str) -> None:
        # #IB/#UB/#RES yearno account balance [quantity]
        tag = line.split(None, 1)[0].upper()
        _require(fields, 3, tag, line_number, line)

        quantity = None
        if len(fields) > 3 and fields[3].value:
            quantity = _parse_amount(fields[3].value, line_number, line)

        self._balances.append(SIEBalance(
            account=_parse_account_code(fields[1].value, line_number, line),
            year=_parse_int(fields[0].value, line_number, line, "fiscal year index"),
            amount=_parse_amount(fields[2].value, line_number, line),
            kind=BALANCE_TAGS[tag],
            quantity=quantity,
            line_number=line_number,
        ))

    def _handle_rar(self, fields: list[Token], line_number: int, line: str) -> None:
        # #RAR yearno start end
        _require(fields, 3, "#RAR", line_number, line)
        start = _parse_date(fields[1].value, line_number, line)
        end = _parse_date(fields[2].value, line_number, line)
        if end < start:
            raise MalformedSIE(line_number, "fiscal year ends before it starts", line)

        self._fiscal_years.append(FiscalYear(
            year=_parse_int(fields[0].value, line_number, line, "fiscal year index"),
            start=start,
            end=end,
        ))

    def _handle_metadata(self, fields: list[Token], line_number: int, line: str) -> None:
        tag = line.split(None, 1)[0].upper()
        _require(fields, 1, tag, line_number, line)
        value = fields[0].value.strip()
        meta = self._metadata

        if tag == "#FLAGGA":
            meta.flag = value
        elif tag == "#FORMAT":
            meta.file_format = value
        elif tag == "#SIETYP":
            meta.sie_type = value
        elif tag == "#PROGRAM":
            meta.program = value
            meta.program_version = fields[1].value if len(fields) > 1 else None
        elif tag == "#GEN":
            meta.generated_on = _parse_date(value, line_number, line)
        elif tag == "#FNAMN":
            meta.company_name = value
        elif tag == "#ORGNR":
            meta.organisation_number = value
        elif tag == "#VALUTA":
            meta.currency = value
        elif tag == "#KPTYP":
            meta.chart_type = value

    def _build_accounts(self) -> list[Account]:
        # #KTYP/#SRU may precede or follow #KONTO, so apply them last
        accounts = []
        for code, data in self._accounts.items():
            accounts.append(Account(
                code=code,
                name=data["name"],
                category=self._account_types.get(code),
                sru_code=self._sru_codes.get(code),
            ))
        return accounts


# ----------------------------------------------------------------------
# Field parsing helpers
# ----------------------------------------------------------------------

def _require(fields: list[Token], count: int, tag: str, line_number: int, line: str) -> None:
    if len(fields) < count:
        raise MalformedSIE(
            line_number,
            f"{tag} expects at least {count} field(s), got {len(fields)}",
            line,
        )


def _parse_int(text: str, line_number: int, line: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise MalformedSIE(line_number, f"invalid {what} {text!r}", line)


def _parse_amount(text: str, line_number: int, line: str) -> Decimal:
    """Amounts may use comma or period as decimal separator."""
    normalized = text.strip().replace(",", ".")
    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        raise MalformedSIE(line_number, f"invalid amount {text!r}", line)
    if not amount.is_finite():
        raise MalformedSIE(line_number, f"invalid amount {text!r}", line)
    return amount


def _parse_date(text: str, line_number: int, line: str) -> date:
    """SIE dates are YYYYMMDD; YYYY-MM-DD is accepted too."""
    value = text.strip().replace("-", "")
    if len(value) != 8 or not value.isdigit():
        raise MalformedSIE(line_number, f"invalid date {text!r}", line)
    try:
        return date(int(value[:4]), int(value[4:6]), int(value[6:]))
    except ValueError:
        raise MalformedSIE(line_number, f"invalid date {text!r}", line)


def _parse_account_code(text: str, line_number: int, line: str) -> str:
    code = text.strip()
    if len(code) != 4 or not code.isdigit() or code[0] in ("0", "9"):
        raise MalformedSIE(line_number, f"invalid account code {text!r}", line)
    return code


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def parse(text: str) -> SIEDocument:
    """Parse SIE text into an SIEDocument. Raises MalformedSIE."""
    return SIEParser().parse(text)


def parse_bytes(data: bytes, encoding: Optional[str] = None) -> SIEDocument:
    """
    Decode and parse raw SIE bytes (e.g. an uploaded file).

    SIE 4 files are CP437; a UTF-8 byte order mark overrides that.
    """
    if data.startswith(b"\xef\xbb\xbf"):
        text = data.decode("utf-8-sig")
    else:
        text = data.decode(encoding or get_settings().sie.encoding)
    return parse(text)


def parse_file(path: Union[str, Path], encoding: Optional[str] = None) -> SIEDocument:
    """Read and parse an SIE file from disk."""
    return parse_bytes(Path(path).read_bytes(), encoding)
