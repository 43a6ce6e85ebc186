from __future__ import annotations

"""result_filter.stages.store_keys

Central definitions for FindingStore keys, so stages and the orchestrator do
not hardcode strings independently.
"""


class StoreKeys:
    MISCONF_SUMMARY = "misconf_summary"
    DUPLICATES_DROPPED = "duplicates_dropped"
