"""Runtime tables for dependencies and reactions.

Dependency and reaction objects only carry an _id; who depends on whom and
what to call on dispose are kept here, keyed by that id. A store rebuilt on
hot reload therefore sees the same graph. Entries are dropped once nothing
subscribes or the reaction is disposed.
"""

import itertools

# dep_id -> set of reactions currently subscribed
dependents: dict[int, set] = {}

# reaction_id -> set of Dependency handles read during the last run
dependencies: dict[int, set] = {}
derivation_fns: dict[int, object] = {}
disposed: dict[int, bool] = {}
dispose_callbacks: dict[int, list] = {}

_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)
