from . import helper
from .sub import *
