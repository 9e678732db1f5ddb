"""Top‑level package for the recurring cash-flow forecasting engine.

The primary modules are:

* ``recurring`` – detects recurring payments from transaction history
* ``distribution`` – splits a budget assignment across underlying categories
* ``schedule`` – keeps stored next-occurrence dates current
* ``db`` – SQLite storage for transactions and income-source schedules

To inspect a local database from the command line you can execute:

```bash
python scripts/show_recurring.py --advance
```
"""

from .distribution import (  # noqa: F401
    distribute,
    distribute_with_history,
    fetch_historical_spending,
    validate_distribution,
)
from .models import (  # noqa: F401
    CategoryDistribution,
    DistributionCheck,
    IncomeSource,
    RecurringPattern,
    Transaction,
)
from .normalize import normalize_key  # noqa: F401
from .recurring import detect_recurring, upcoming_patterns  # noqa: F401
from .schedule import ScheduleWriter, advance_occurrence, advance_stale_schedules  # noqa: F401


__all__ = [
    "CategoryDistribution",
    "DistributionCheck",
    "IncomeSource",
    "RecurringPattern",
    "ScheduleWriter",
    "Transaction",
    "advance_occurrence",
    "advance_stale_schedules",
    "detect_recurring",
    "distribute",
    "distribute_with_history",
    "fetch_historical_spending",
    "normalize_key",
    "upcoming_patterns",
    "validate_distribution",
]
