"""Library modules for the budget insight engine.

Structure:
    - config/: JSON policy configuration and loaders
    - common/: Shared formatting, file and DataFrame helpers
    - budgets/: Classification, allocation, plan calculation and storage
    - goals/: Goal progress tracking and debt helpers
    - insights/: Insight synthesis
"""

__all__ = ['config', 'common', 'budgets', 'goals', 'insights']
