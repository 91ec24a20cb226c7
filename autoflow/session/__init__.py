from .token_store import TokenStore, InMemoryTokenStore, FileTokenStore, TOKEN_KEY, TOKEN_META_KEY, USER_KEY
from .manager import SessionManager
