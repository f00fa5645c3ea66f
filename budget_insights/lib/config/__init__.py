"""Engine configuration files and loaders.

Policy thresholds, the classifier keyword table and the default category
set are stored in JSON files so they can be tuned without code changes.
"""

from .defaults import load_config, get_budget_config, get_config_value

__all__ = ['load_config', 'get_budget_config', 'get_config_value']
