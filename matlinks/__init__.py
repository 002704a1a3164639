"""MatLinks.

Backend for running a martial-arts gym: members, classes, locations and the
billing that keeps memberships active.

Most of the heavy lifting is delegated to two hosted platforms:

- **Supabase** owns identity (signup, login, password reset, email
  confirmation) and hosts the Postgres database the entities live in.
- **Stripe** owns money: customers, subscriptions, invoices, payment
  intents and webhook signatures.

Subpackages
-----------

- ``matlinks.core``: logging, monitoring and the database layer (entities,
  repositories, I/O schemas).
- ``matlinks.auth``: thin wrapper around the Supabase auth client.
- ``matlinks.billing``: thin wrapper around the Stripe SDK plus the retry
  schedule and price helpers used by the billing services.
- ``matlinks.server``: the FastAPI application, its routers and services.
"""

__version__ = "0.1.0"
