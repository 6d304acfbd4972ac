from .base import Base
from .models.store import Store  # Registers stores table
from .models.search_analytics import SearchAnalytics
from .models.search_history import SearchHistory
