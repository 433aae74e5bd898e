"""Retention policy model."""

from datetime import timedelta

from pydantic import BaseModel, Field


class RetentionPolicy(BaseModel):
    """
    Maximum artifact age, globally and per provider.

    An artifact is expired when its age is strictly greater than the
    window: exactly max_age_days old is still retained.
    """

    max_age_days: int = Field(default=7, ge=0)
    overrides: dict[str, int] = Field(default_factory=dict)

    def max_age_for(self, provider: str) -> timedelta:
        """Get the retention window for a provider."""
        return timedelta(days=self.overrides.get(provider, self.max_age_days))

    def is_expired(self, provider: str, age: timedelta) -> bool:
        return age > self.max_age_for(provider)
