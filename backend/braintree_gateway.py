import os

import braintree

BRAINTREE_ENVIRONMENTS = {
    "sandbox": braintree.Environment.Sandbox,
    "production": braintree.Environment.Production,
}

_gateway = None


def get_gateway():
    global _gateway
    if _gateway is None:
        environment = os.getenv("BRAINTREE_ENVIRONMENT", "sandbox").lower()
        _gateway = braintree.BraintreeGateway(
            braintree.Configuration(
                environment=BRAINTREE_ENVIRONMENTS.get(environment, braintree.Environment.Sandbox),
                merchant_id=os.getenv("BRAINTREE_MERCHANT_ID"),
                public_key=os.getenv("BRAINTREE_PUBLIC_KEY"),
                private_key=os.getenv("BRAINTREE_PRIVATE_KEY"),
            )
        )
    return _gateway


def generate_client_token():
    return get_gateway().client_token.generate()


def charge(amount, nonce):
    return get_gateway().transaction.sale({
        "amount": amount,
        "payment_method_nonce": nonce,
        "options": {"submit_for_settlement": True},
    })
