"""State layer.

Immutable session snapshots and the policy deciding when an incoming sample
advances them. Session machines replace snapshots wholesale; nothing here is
mutated in place.
"""
