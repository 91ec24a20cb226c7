from .activepieces import ActivePiecesClient
