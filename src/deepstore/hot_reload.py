"""Hot-reload-aware store. Opt-in — import only if you need hot-reload support."""

import logging

from deepstore.store import ReactiveStore

logger = logging.getLogger("deepstore.hot_reload")


class HotReloadStore(ReactiveStore):
    """Store that survives module reloads via safe reconciliation.

    Same API as ReactiveStore. Adds:
    - Exception safety: reconcile catches and logs registry/reaction setup failures
    - Logging: reconcile events are clearly logged
    - Degraded operation: if reconcile fails, the store keeps its value and
      whatever registries were merged before the failure, with no reactions
    """

    def reconcile(self, setup_fn, *, mutators=None, methods=None, computations=None):
        """Safe reconciliation — catches exceptions, logs, never crashes."""
        old_count = len(self._reaction_disposers)
        try:
            super().reconcile(
                setup_fn,
                mutators=mutators,
                methods=methods,
                computations=computations,
            )
        except Exception:
            logger.exception("Failed to reconcile store")
            # value kept, reactions gone
            self._dispose_reactions()
            self._reaction_disposers = []
            return

        logger.info(
            "Reconciled: %d mutators, %d methods, %d computations, %d->%d reactions",
            len(mutators or ()),
            len(methods or ()),
            len(computations or ()),
            old_count,
            len(self._reaction_disposers),
        )
