from .tools import process_setvals, apply_setvals
