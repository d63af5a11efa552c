"""
Application layer - Application Business Rules.

This layer contains:
- Interfaces (ports) for encryption and password hashing
- The access validator and the authorization, provisioning and deletion services
"""
