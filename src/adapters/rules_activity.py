from src.rules.models import Rules


class ActivityRulesAdapter:
    """Adapter to map generic Rules to Activity component RulesPort."""

    def __init__(self, rules: Rules):
        self._rules = rules.activity

    def get_inactivity_threshold_seconds(self) -> int:
        return self._rules.inactivity_threshold_seconds

    def get_signals(self) -> tuple[str, ...]:
        return tuple(self._rules.signals)
