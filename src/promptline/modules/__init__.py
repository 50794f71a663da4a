"""Registry of prompt modules, in default prompt order."""
from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional, Union

from ..context import Context
from ..module import Module
from . import aws, perl, pony

ModuleResult = Optional[Module]
ModuleHandler = Callable[[Context], Union[ModuleResult, Awaitable[ModuleResult]]]

ALL_MODULES: Dict[str, ModuleHandler] = {
    "perl": perl.module,
    "pony": pony.module,
    "aws": aws.module,
}

__all__ = ("ALL_MODULES", "ModuleHandler", "aws", "perl", "pony")
