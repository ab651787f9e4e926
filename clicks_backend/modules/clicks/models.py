# Supabase tables: clicks, click_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and workflow.py

"""
Expected Supabase table structure:

click_frequency (enum): 'daily', 'weekly', 'monthly'

clicks:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null, 3..50 characters)
- description: text (nullable, at most 500 characters)
- created_by: uuid (foreign key to auth.users.id, not null)
- schedule_frequency: click_frequency (nullable)
- schedule_day: integer (nullable, 1..31)
- schedule_time: text (nullable, HH:MM)
- request_id: text (nullable) - client idempotency key
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- unique constraint on (created_by, request_id)

click_members:
- click_id: uuid (foreign key to clicks.id on delete cascade, not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: text (default: 'member') - values: admin, member
- joined_at: timestamp (default: now())
- primary key (click_id, user_id)

Row level security: only admin members may update or delete a click. Deleting
a click that has no admin (compensation after a failed membership insert)
therefore goes through the service role client.
"""
