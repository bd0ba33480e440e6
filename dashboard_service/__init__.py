"""Nursing dashboard backend: patients, vitals, reminders, assistant chat."""
