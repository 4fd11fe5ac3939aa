"""
CryptoSim: back-office API for a cryptocurrency-trading simulation.

Application package root. A modular monolith using hexagonal
architecture (ports & adapters).

Bounded contexts:
    - accounts: Traders, operator admins, authentication.
    - trading: Simulated orders and their settlement.
    - markets: Market sessions, sub-markets, cycles and live ticker data.
    - cms: Testimonials, carousels, leaderboard, trading performance.
    - settings: Key/value platform settings and the admin IP whitelist.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (ORM, Binance, bcrypt, JWT, disk) implementing ports.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
    - client: HTTP client used by the admin console and operator scripts.
"""
