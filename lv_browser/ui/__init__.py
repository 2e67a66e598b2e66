"""
Dash front end: one card per linked view, interaction callbacks and the
server-side session that links the views
"""
