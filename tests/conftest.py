"""Shared fixtures."""

import pytest

from ledger_core.config import get_settings


SAMPLE_SIE = """#FLAGGA 0
#PROGRAM "Bokföring" 2.1
#FORMAT PC8
#GEN 20250110
#SIETYP 4
#FNAMN "Testbolaget AB"
#ORGNR 556000-0000
#VALUTA SEK
#KPTYP BAS2014
#RAR 0 20240101 20241231
#RAR -1 20230101 20231231
#KONTO 1930 "Företagskonto"
#KONTO 2081 "Aktiekapital"
#KONTO 2611 "Utgående moms"
#KONTO 3001 "Försäljning inom Sverige"
#KONTO 5010 "Lokalhyra"
#KONTO 6310 "Företagsförsäkringar"
#KTYP 1930 T
#SRU 3001 7410
#DIM 1 "Kostnadsställe"
#IB 0 1930 25000,00
#IB 0 2081 -25000,00
#UB 0 1930 24250,00
#UB 0 2081 -25000,00
#UB 0 2611 -250,00
#RES 0 3001 -1000,00
#RES 0 5010 2000,00
#VER A 1 20240115 "Försäljning" 20240116
{
#TRANS 1930 {} 1250,00
#TRANS 3001 {} -1000,00
#TRANS 2611 {} -250,00
}
#VER A 2 20240201 "Hyra februari"
{
#TRANS 5010 {1 "100"} 2000.00 20240201 "Hyra"
#TRANS 1930 {} -2000.00
}
"""


@pytest.fixture
def sample_sie() -> str:
    return SAMPLE_SIE


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees default settings, whatever the shell exports."""
    for name in (
        "LEDGER_DEFAULT_SERIES",
        "LEDGER_RECEIPT_SERIES",
        "LEDGER_STRICT_ACCOUNTS",
        "LEDGER_ALLOW_ADHOC_ACCOUNTS",
        "LEDGER_DEFAULT_VAT_RATE",
        "LEDGER_MAX_IMPORT_SIZE_MB",
        "SIE_ENCODING",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
