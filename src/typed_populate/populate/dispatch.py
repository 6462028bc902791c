"""Routes fetched documents back into a population.

``dispatch`` is the one place that decides, per populator kind, what to do
with the result of a fetch: documents fetched by an element or array
populator are added to their type's bucket (which in turn resolves their own
references), while the per-field results of an embedded populator are routed
to the matching child populator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from typed_populate.populate.populators import (
    PopulateArray,
    PopulateElement,
    PopulateEmbedded,
    PopulateEmbeddedArray,
    Populator,
)
from typed_populate.populate.tasks import gather_all

if TYPE_CHECKING:
    from typed_populate.populate.population import Population


async def dispatch(populator: Populator, population: Population, unseen: Any, populated: Any) -> None:
    """Register the documents ``populator`` fetched for the ``unseen`` ids.

    Args:
        populator: The populator that issued the fetch.
        population: The population being filled.
        unseen: What ``populator.unseen`` returned: a list of ids, or for
            embedded populators a mapping of field name to nested ids.
        populated: What ``populator.populate`` returned for ``unseen``.
    """
    if isinstance(populator, (PopulateElement, PopulateArray)):
        population.check_resolved(populator.key, unseen, populated)
        await population.add_models(populator.key, populated, save_ids=True)
    elif isinstance(populator, (PopulateEmbedded, PopulateEmbeddedArray)):
        await gather_all(
            dispatch(populator.populators[name], population, unseen[name], result)
            for name, result in populated.items()
        )
    else:
        raise TypeError(f"Unknown populator: {populator!r}")
