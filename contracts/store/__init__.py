from core.shortcuts import load_from_setting

from .base import LedgerStore


def get_ledger_store() -> LedgerStore:

    return load_from_setting('LEDGER_STORE')
