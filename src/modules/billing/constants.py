"""Credit pack catalogue sold through Stripe Checkout."""

from dataclasses import dataclass
from enum import Enum

from src.api.billing.schemas import CreditPackModel, CreditPackCatalogModel
from src.utils.settings.stripe import StripeSettings

_stripe_settings = StripeSettings()


class CreditPackId(str, Enum):
    PACK_25 = "pack_25"
    PACK_100 = "pack_100"
    PACK_500 = "pack_500"


@dataclass(frozen=True)
class CreditPackConfig:
    """Configuration for a one-off credit pack; price in minor units (pence)."""

    name: str
    credits: int
    unit_amount: int
    popular: bool = False

    @property
    def description(self) -> str:
        return f"{self.credits} invoice conversion credits"


CREDIT_PACKS: dict[CreditPackId, CreditPackConfig] = {
    CreditPackId.PACK_25: CreditPackConfig(
        name="Starter Pack", credits=25, unit_amount=900
    ),
    CreditPackId.PACK_100: CreditPackConfig(
        name="Pro Pack", credits=100, unit_amount=1900, popular=True
    ),
    CreditPackId.PACK_500: CreditPackConfig(
        name="Business Pack", credits=500, unit_amount=4900
    ),
}


def get_credit_pack_catalog() -> CreditPackCatalogModel:
    """Get all credit packs for API responses."""
    return CreditPackCatalogModel(
        currency=_stripe_settings.STRIPE_CURRENCY.upper(),
        packs=[
            CreditPackModel(
                id=pack_id.value,
                name=config.name,
                credits=config.credits,
                price=config.unit_amount / 100,
                description=config.description,
                popular=config.popular,
            )
            for pack_id, config in CREDIT_PACKS.items()
        ],
    )
