"""Rule dispatcher: prepares working sets and runs one topology rule."""

import logging
from typing import Optional

from topocheck.config import Settings, get_settings
from topocheck.topology.context import CancellationToken, ProgressCallback, RunContext
from topocheck.topology.layers import VectorLayer
from topocheck.topology.rules import RuleRegistry, TopologyRule
from topocheck.topology.types import Rectangle, TopologyError, ValidationScope

logger = logging.getLogger(__name__)


class TopologyEngine:
    """Runs topology rules against vector layers.

    The registry is built once per engine. Every ``run_test`` call gets a
    fresh ``RunContext``, so working sets and spatial indexes never survive
    from one run to the next.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.registry = RuleRegistry()
        self.token = CancellationToken()
        self._progress_listeners: list[ProgressCallback] = []
        self.context: Optional[RunContext] = None

    @property
    def rules(self) -> dict[str, TopologyRule]:
        return self.registry.rules

    def add_progress_listener(self, callback: ProgressCallback) -> None:
        self._progress_listeners.append(callback)

    def cancel(self) -> None:
        """Ask the running (or next) scan to stop at its next check point."""
        self.token.cancel()

    def _new_context(self, extent: Optional[Rectangle]) -> RunContext:
        return RunContext(
            token=self.token,
            extent=extent,
            progress_interval=self.settings.progress_interval,
            gap_buffer_distance=self.settings.gap_buffer_distance,
            gap_buffer_quad_segs=self.settings.gap_buffer_quad_segs,
            progress_callbacks=list(self._progress_listeners),
        )

    def run_test(
        self,
        rule_name: str,
        layer1: Optional[VectorLayer],
        layer2: Optional[VectorLayer] = None,
        scope: ValidationScope = ValidationScope.LAYER,
        extent: Optional[Rectangle] = None,
    ) -> list[TopologyError]:
        """Run one rule and return the topology errors it found.

        Caller mistakes (no first layer, missing second layer for a two-layer
        rule, unknown rule, extent scope without an extent) are logged and
        yield an empty result. A canceled run returns what was found so far.
        """
        self.context = None

        if layer1 is None:
            logger.warning(f"Rule '{rule_name}' called without a first layer")
            return []

        rule = self.registry.get(rule_name)
        if rule is None:
            logger.warning(f"Unknown topology rule: {rule_name}")
            return []

        if rule.use_second_layer and layer2 is None:
            logger.warning(f"Rule '{rule_name}' requires a second layer")
            return []

        scope = ValidationScope(scope)
        if scope == ValidationScope.EXTENT:
            if extent is None:
                logger.warning(f"Rule '{rule_name}' called with extent scope but no extent")
                return []
            run_extent = extent
        else:
            run_extent = None
        is_extent = run_extent is not None

        ctx = self._new_context(run_extent)
        self.context = ctx

        if rule.use_second_layer:
            ctx.fill_feature_list(layer1, run_extent)
            if ctx.ensure_index(layer2, run_extent) is None:
                logger.info(f"Index build for layer '{layer2.name}' was canceled")
                return []
        elif rule.use_spatial_index:
            if ctx.ensure_index(layer1, run_extent) is None:
                logger.info(f"Index build for layer '{layer1.name}' was canceled")
                return []
        else:
            ctx.fill_feature_list(layer1, run_extent)

        logger.debug(
            f"Running '{rule_name}' on '{layer1.name}'"
            + (f" against '{layer2.name}'" if rule.use_second_layer else "")
            + f" ({len(ctx.feature_list1)} primary, {len(ctx.feature_map2)} indexed)"
        )

        errors = rule.check(ctx, layer1, layer2, is_extent)
        if ctx.canceled:
            logger.info(f"Rule '{rule_name}' canceled with {len(errors)} partial errors")
        else:
            logger.info(f"Rule '{rule_name}' found {len(errors)} errors")
        return errors
