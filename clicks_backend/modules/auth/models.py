# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Email/password and OAuth (Google, Facebook) sign-in
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_oauth() - Build the provider redirect URL
- auth.get_user() - Get current user from JWT token (see core/session.py)
- auth.admin.sign_out(jwt) - Revoke one user's token on logout (service-role client)

Sign-up and sign-in store a session on the client that makes the call, so they
run on a per-request client (database/supabase_client.py), never on the shared one.

A profiles row (modules/profiles/models.py) is expected to be created for each
new auth user by a database trigger.
"""
