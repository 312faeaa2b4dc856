from mealcart.utilities.config import DATA_DIR

# Centralized paths for data files (single source of truth)
PLANS_FILE = DATA_DIR / 'meal_plans.json'
CHECK_STATE_FILE = DATA_DIR / 'check_state.json'

__all__ = ['DATA_DIR', 'PLANS_FILE', 'CHECK_STATE_FILE']
