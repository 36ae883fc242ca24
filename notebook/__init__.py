"""
Notebook Application.

- backend/: Note service, ranking queries, API, database, configuration, events
- drawer/: Client-side drawer controller (list/view/add/edit/delete state machine)
"""
