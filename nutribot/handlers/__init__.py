# main.py imports this package; each module registers its handlers on the shared router from start.py.
# start must come first so /start is matched before the catch-all text handler.

from . import start
from . import messages
