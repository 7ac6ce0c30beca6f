"""
Utility package setup.

Enables pandas Copy-on-Write globally so design matrices built from user data
never mutate the caller's DataFrame.
"""

import pandas as pd

pd.options.mode.copy_on_write = True
