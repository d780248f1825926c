"""
Phase specs for the built-in map and reduce functions.

A PhaseSpec tells the pipeline which function to run in a phase, the
argument it was built with, and whether the pipeline should keep that
phase's output (``accumulate``). For example::

    phases = [map_object_value(False), reduce_sum(True)]

sums the values of the input objects and returns only the total.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple

from . import index_reduce, map_functions, reduce_functions
from .function_loader import resolve_function


class PhaseKind(str, Enum):
    MAP = "map"
    REDUCE = "reduce"


@dataclass(frozen=True)
class PhaseSpec:
    kind: PhaseKind
    function: Callable
    arg: Any = None
    accumulate: bool = False

    @property
    def name(self) -> str:
        return f"{self.function.__module__}:{self.function.__qualname__}"

    def invoke(self, *args):
        """Call the phase function with the arguments the pipeline supplies"""
        return self.function(*args)


def build_phase(kind, function, arg=None, accumulate=False) -> PhaseSpec:
    """
    Build a phase spec

    Args:
        kind: PhaseKind or its value, "map" or "reduce"
        function: Callable, ``"module:function"`` string or
            ``(module, function)`` pair
        arg: Argument stored with the phase
        accumulate: Passed to the pipeline as given

    Raises:
        ValueError: If kind is not a phase kind
        FunctionLoadError: If function cannot be resolved
    """
    return PhaseSpec(PhaseKind(kind), resolve_function(function), arg, accumulate)


# map phases

def map_identity(accumulate) -> PhaseSpec:
    """Phase returning each object it's handed"""
    return build_phase(PhaseKind.MAP, map_functions.map_identity, None, accumulate)


def map_object_value(accumulate) -> PhaseSpec:
    """Phase returning the value of each input object"""
    return build_phase(PhaseKind.MAP, map_functions.map_object_value, None, accumulate)


def map_object_value_list(accumulate) -> PhaseSpec:
    """Phase returning the elements of each input object's list value"""
    return build_phase(PhaseKind.MAP, map_functions.map_object_value_list, None, accumulate)


# reduce phases

def reduce_identity(accumulate) -> PhaseSpec:
    """Phase returning ``(bucket, key)`` for each bucket/key input"""
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_identity, None, accumulate)


def reduce_set_union(accumulate) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_set_union, None, accumulate)


def reduce_sort(accumulate) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_sort, None, accumulate)


def reduce_sum(accumulate) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_sum, None, accumulate)


def reduce_plist_sum(accumulate) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_plist_sum, None, accumulate)


def reduce_count_inputs(accumulate) -> PhaseSpec:
    """
    Phase counting its inputs

    Useful for counting the keys of a key listing. The inputs must not be
    integers, which are taken for earlier counts.
    """
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_count_inputs, None, accumulate)


def reduce_string_to_integer(accumulate) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, reduce_functions.reduce_string_to_integer, None, accumulate)


# index reduce phases, built with their argument

def reduce_index_identity(accumulate=False) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, index_reduce.reduce_index_identity, None, accumulate)


def reduce_index_extract_integer(arg: index_reduce.ExtractIntegerArgs, accumulate=False) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, index_reduce.reduce_index_extract_integer,
                       index_reduce.ExtractIntegerArgs(*arg), accumulate)


def reduce_index_by_range(arg: index_reduce.RangeArgs, accumulate=False) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, index_reduce.reduce_index_by_range,
                       index_reduce.RangeArgs(*arg), accumulate)


def reduce_index_regex(arg: index_reduce.RegexArgs, accumulate=False) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, index_reduce.reduce_index_regex,
                       index_reduce.RegexArgs(*arg), accumulate)


def reduce_index_max(arg: index_reduce.MaxArgs, accumulate=False) -> PhaseSpec:
    return build_phase(PhaseKind.REDUCE, index_reduce.reduce_index_max,
                       index_reduce.MaxArgs(*arg), accumulate)


PHASE_REGISTRY: Dict[str, Tuple[PhaseKind, Callable]] = {
    function.__name__: (kind, function)
    for kind, functions in [
        (PhaseKind.MAP, [
            map_functions.map_identity,
            map_functions.map_object_value,
            map_functions.map_object_value_list,
        ]),
        (PhaseKind.REDUCE, [
            reduce_functions.reduce_identity,
            reduce_functions.reduce_set_union,
            reduce_functions.reduce_sort,
            reduce_functions.reduce_sum,
            reduce_functions.reduce_plist_sum,
            reduce_functions.reduce_count_inputs,
            reduce_functions.reduce_string_to_integer,
            index_reduce.reduce_index_identity,
            index_reduce.reduce_index_extract_integer,
            index_reduce.reduce_index_by_range,
            index_reduce.reduce_index_regex,
            index_reduce.reduce_index_max,
        ]),
    ]
    for function in functions
}
