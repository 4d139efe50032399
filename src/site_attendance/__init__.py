"""Site attendance package.

Feature modules (geofence, attendance, bulletins, departments, identity, jobs)
sit on top of a document-store persistence boundary, with thin Flask
controllers and a scheduler driving the time-triggered jobs.
"""
