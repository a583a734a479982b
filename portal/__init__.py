"""
Broker Portal: client dashboard and back-office API for a forex broker.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - brokerage: Clients, trading accounts, funding, transfers, KYC,
      support tickets, referrals.
    - backoffice: Admin roles, country scoping, approvals, reports.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (database, password hashing) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
