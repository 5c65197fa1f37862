from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    subscription_key: str
    api_user: str
    api_key: str = field(repr=False)


@dataclass(frozen=True)
class AccessToken:
    value: str = field(repr=False)
    expires_at: float
    token_type: str = 'access_token'

    def is_fresh(self, now: float, margin: float) -> bool:
        return now < self.expires_at - margin

    @property
    def authorization(self) -> str:
        return f'Bearer {self.value}'
