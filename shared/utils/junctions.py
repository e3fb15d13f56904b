"""
shared/utils/junctions.py
Keeps association-object collections (coach_sport, branch_facility, ...)
in step with a requested id list without re-inserting existing pairs.
"""

from typing import Callable, Iterable


def sync_links(links: list, wanted_ids: Iterable[int], key: str, factory: Callable) -> None:
    """
    Mutate a loaded link collection so it holds exactly `wanted_ids`.
    Existing rows are kept, missing ones are created with `factory(id)`,
    extras are removed (delete-orphan cascade deletes them on flush).
    """
    wanted = list(dict.fromkeys(wanted_ids))
    for link in list(links):
        if getattr(link, key) not in wanted:
            links.remove(link)
    present = {getattr(link, key) for link in links}
    for entity_id in wanted:
        if entity_id not in present:
            links.append(factory(entity_id))


def link_ids(links: list, key: str) -> list[int]:
    return [getattr(link, key) for link in links]
