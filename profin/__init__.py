"""
ProFin: Personal Finance Planning Core

Turns a household's income, expenses, debts and goals into tax
liabilities, required contributions, debt payoff schedules and
probability-weighted wealth forecasts.

Modules
-------
- tax          : Indian old/new regime tax engine (data in tax_data)
- inflation    : Present/future value and category inflation
- montecarlo   : Stochastic projection engine (Box–Muller variates)
- debt         : Avalanche/snowball payoff simulator
- goals        : Required SIP, months-to-target and goal achievability
- config       : Pydantic configuration models and application settings
- serialization: JSON plan loading and result dumping
- utils        : Shared utilities (validation, rates, dates, formatting)

"""

__version__ = "0.1.0"

from .tax import compute_tax, compare_regimes
from .inflation import future_value, present_value
from .montecarlo import simulate_goal, simulate_portfolio
from .debt import DebtRecord, build_payoff_plan
from .goals import GoalSpec, HouseholdSnapshot, assess_goal, required_monthly_contribution
from . import utils
