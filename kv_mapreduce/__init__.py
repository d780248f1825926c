"""
Common map and reduce phase functions for a key/value store's map/reduce pipeline
"""

from .errors import (CAIViolation, FunctionLoadError, IntegerConversionError,
                     PhaseError, UnhandledActionError, UnhandledEntryError)
from .index_reduce import (ExtractIntegerArgs, MaxArgs, RangeArgs, RegexArgs,
                           reduce_index_by_range, reduce_index_extract_integer,
                           reduce_index_identity, reduce_index_max,
                           reduce_index_regex)
from .map_functions import map_identity, map_object_value, map_object_value_list
from .notfound import (NotFoundAction, Substitute, is_datum, not_found_filter,
                       parse_not_found_action)
from .phases import PHASE_REGISTRY, PhaseKind, PhaseSpec, build_phase
from .records import BKey, IndexEntry, KeepPolicy, NotFound, StoredObject
from .reduce_functions import (reduce_count_inputs, reduce_identity,
                               reduce_plist_sum, reduce_set_union, reduce_sort,
                               reduce_string_to_integer, reduce_sum)
from .verify import check_cai

__version__ = "0.1.0"
