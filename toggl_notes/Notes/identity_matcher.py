# identity_matcher.py
# Description: Decides which remote time entries belong to a note, by name
#
# Matching is exact string equality after lower-casing. No trimming, no fuzzy
# or partial matching. Two notes sharing an alias both claim the same entry.
#
# Imports
from typing import Iterable, List, Set
#
# Local Imports
from ..toggl_api.schemas import TimeEntry
#
########################################################################################################################
#
# Functions:

def acceptable_names(primary_name: str, aliases_and_title: Iterable[str]) -> Set[str]:
    """Lower-cased {stem} | {aliases} | {title}; empty names are dropped."""
    names = {primary_name.lower()}
    names.update(name.lower() for name in aliases_and_title)
    names.discard("")
    return names


def matches(entry: TimeEntry, names: Set[str]) -> bool:
    if not entry.description:
        return False
    return entry.description.lower() in names


def filter_matching(entries: Iterable[TimeEntry], names: Set[str]) -> List[TimeEntry]:
    """Entries whose description matches one of the names, in the given order."""
    return [entry for entry in entries if matches(entry, names)]

#
# End of identity_matcher.py
########################################################################################################################
