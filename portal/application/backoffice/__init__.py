"""
Application layer for the admin back office.

Use cases here always receive the acting admin and apply
role and country scoping before touching client data.
"""
