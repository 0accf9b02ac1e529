# src/core/reconcilers/__init__.py
from .base import BaseReconciler

import pkgutil
import importlib
from typing import List


def load_reconcilers() -> List[type[BaseReconciler]]:
    """
    Garante que todos os módulos em core.reconcilers.* foram importados,
    para que o __init_subclass__ do BaseReconciler tenha rodado
    e populado o registry.
    """
    package_name = __name__  # "core.reconcilers"

    for finder, name, ispkg in pkgutil.iter_modules(__path__, package_name + "."):
        if name.endswith(".base"):
            continue
        importlib.import_module(name)

    return list(BaseReconciler.registry)


def get_reconciler_for_kind(kind: str) -> type[BaseReconciler]:
    for reconciler_cls in load_reconcilers():
        if reconciler_cls.kind.lower() == kind.lower():
            return reconciler_cls

    raise ValueError(f"no reconciler registered for kind: {kind}")
