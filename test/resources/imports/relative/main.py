import pkg.helper
from pkg.sub import *

try:
    import missing_module_for_binding as missing
except ImportError:
    missing = None
