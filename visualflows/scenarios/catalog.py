"""Built-in scenarios."""

from __future__ import annotations

from visualflows.models.scenario import (
    Checkpoint,
    Click,
    Locator,
    MatchOptions,
    Navigate,
    Scenario,
    Wait,
)

PRODUCT_URL = "https://applitools-demo-ecommerce.vercel.app/products/music/awesome-bronze-pants/"
DOCS_URL = "https://app-directory-iota-dun.vercel.app/"

# The demo shop animates its cart drawer; clicks are spaced out.
CART_DELAY_MS = 10000

LAYOUT = MatchOptions(layout=True, fully=True)

ECOMMERCE_CHECKOUT = Scenario(
    name="ACME Bank Should Add Item To Cart",
    app_name="Selenium Test",
    steps=(
        Navigate(url=PRODUCT_URL, description="Visit website"),
        Checkpoint(name="Home Page", match_options=MatchOptions(fully=True),
                   description="Verify product page"),
        Click(locator=Locator.id("buyButton"), description="Click Buy Now"),
        Wait(duration_ms=CART_DELAY_MS),
        Click(locator=Locator.id("buyButton"), description="Click Buy Now"),
        Wait(duration_ms=CART_DELAY_MS),
        Click(locator=Locator.class_name("cart-button-module--cartButton--m4LbS"),
              description="Click Cart"),
        Checkpoint(name="Cart", match_options=LAYOUT, description="Verify cart page"),
        Wait(duration_ms=CART_DELAY_MS),
        Click(locator=Locator.class_name("cart-module--checkoutButton--T0q0g"),
              description="Click Checkout"),
        Wait(duration_ms=CART_DELAY_MS, description="Waiting"),
        Checkpoint(name="Checkout", match_options=LAYOUT, description="Verify checkout"),
    ),
)

DOCS_NAVIGATION = Scenario(
    name="Grouped Layout Test Grouped Layout Test Quick",
    app_name="Next Playground",
    steps=(
        Navigate(url=DOCS_URL, description="Visit website"),
        Checkpoint(name="Docs Home Page", match_options=LAYOUT, description="Docs Home Page"),
        Click(locator=Locator.id("groupedLayouts"), description="Click link"),
        Checkpoint(name="Grouped Layouts Page", match_options=LAYOUT,
                   description="Verify Grouped Layouts Page"),
    ),
)

SCENARIOS: dict[str, Scenario] = {
    "ecommerce": ECOMMERCE_CHECKOUT,
    "docs": DOCS_NAVIGATION,
}


def get_scenario(key: str) -> Scenario:
    try:
        return SCENARIOS[key]
    except KeyError:
        raise KeyError(f"Unknown scenario '{key}' (known: {', '.join(sorted(SCENARIOS))})") from None
