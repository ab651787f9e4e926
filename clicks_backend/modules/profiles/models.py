# Supabase tables: profiles, storage bucket: avatars
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- full_name: text (nullable)
- username: text (nullable, unique)
- website: text (nullable)
- bio: text (nullable)
- location: text (nullable)
- social_links: jsonb (nullable) - {"twitter": ..., "github": ..., "linkedin": ...}
- avatar_url: text (nullable) - public URL in the avatars bucket
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Row level security: a profile may only be updated by its owner.

avatars (storage bucket, public):
- objects stored at <user-id>/<random-id>.<extension>
- replaced avatars are not deleted
"""
