"""Topology records and the dispatch-plan compiler."""

from rabbitstress.topology.compiler import DispatchEntry, DispatchPlan, compile_plan
from rabbitstress.topology.models import (
    Binding,
    Exchange,
    ExchangeKind,
    coerce_bindings,
    coerce_exchanges,
    freeze,
    index_exchanges,
    thaw,
)

__all__ = [
    "Binding",
    "DispatchEntry",
    "DispatchPlan",
    "Exchange",
    "ExchangeKind",
    "coerce_bindings",
    "coerce_exchanges",
    "compile_plan",
    "freeze",
    "index_exchanges",
    "thaw",
]
