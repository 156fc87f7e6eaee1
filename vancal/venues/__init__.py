# Import all venue plugins to register them. Order here is scrape order.
from vancal.venues import rickshaw  # noqa: F401
from vancal.venues import rio  # noqa: F401
from vancal.venues import fox  # noqa: F401
