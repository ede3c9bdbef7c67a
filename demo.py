#!/usr/bin/env python
from marketplace import settings
from sdk.marketclient import MarketClient

def main():
    c = MarketClient(base_url=settings.API_URL)

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    print(c.reset())

    # -----------------------------
    # Sign up
    # -----------------------------
    print("\nSigning up...")
    print(c.signup("alice", "alice@example.com", "secret", "secret"))

    # -----------------------------
    # Add products
    # -----------------------------
    print("\nAdding products...")
    laptop = c.add_product("Laptop", "1500.00", "💻", "electronics", "14 inch")
    mug = c.add_product("Mug", "9.99", "☕", "other")
    print(laptop)
    print(mug)

    # -----------------------------
    # List and filter
    # -----------------------------
    print("\nListing products...")
    print(c.list_products())
    print("\nElectronics only...")
    print(c.list_products("electronics"))

    # -----------------------------
    # Edit a product
    # -----------------------------
    print("\nRepricing the mug...")
    print(c.update_product(mug["product_id"], "Mug", "7.50", "☕", "other", "Now on sale"))

    # -----------------------------
    # Cart
    # -----------------------------
    print("\nFilling the cart...")
    c.add_to_cart(laptop["product_id"])
    c.add_to_cart(mug["product_id"])
    print(c.set_quantity(mug["product_id"], 3))

    # -----------------------------
    # Checkout
    # -----------------------------
    print("\nChecking out with PayPal...")
    print(c.checkout("paypal"))
    print(c.notification())

    # -----------------------------
    # Logout wipes everything
    # -----------------------------
    print("\nLogging out...")
    print(c.logout())

if __name__ == "__main__":
    main()
