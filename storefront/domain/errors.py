"""Wyjatki domenowe sklepu.

Serwisy rzucaja tylko te klasy, mapowanie na kody HTTP jest w jednym
miejscu (storefront.main).
"""


class StorefrontError(Exception):
    """Bazowy wyjatek dla wszystkich bledow sklepu."""

    pass


class ValidationError(StorefrontError):
    """Niepoprawne dane wejsciowe, odrzucone przed zapisem czegokolwiek."""

    pass


class InvalidTransitionError(ValidationError):
    """Przejscie statusu spoza dozwolonej sekwencji."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Niedozwolona zmiana statusu: {current} -> {target}")


class AuthenticationError(StorefrontError):
    """Nieudana weryfikacja tozsamosci lub podpisu."""

    pass


class AuthorizationError(StorefrontError):
    """Wywolujacy nie ma wymaganej roli."""

    pass


class NotFoundError(StorefrontError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} nie istnieje")


class ConflictError(StorefrontError):
    """Status zmienil sie rownolegle, warunkowy update nie trafil w wiersz."""

    def __init__(self, order_id: int, expected: str):
        self.order_id = order_id
        self.expected = expected
        super().__init__(
            f"Zamowienie {order_id} nie jest juz w statusie {expected} (zmiana rownolegla)"
        )


class RateLimitedError(StorefrontError):
    pass


class UpstreamError(StorefrontError):
    """Blad zewnetrznego dostawcy (platnosci, email, katalog)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class WebhookProcessingError(StorefrontError):
    """Blad po weryfikacji podpisu, 500 zeby procesor ponowil dostarczenie."""

    pass
