"""
Brokerage bounded context: domain layer.

This module contains all domain logic of the portal:
- Clients, trading accounts and trade history
- Deposits, withdrawals and fund transfers
- KYC documents and verification
- Support tickets, notifications and referrals
- Admin roles and country scoping
"""
