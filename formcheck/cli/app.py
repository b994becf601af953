"""Cyclopts application and command routing for the formcheck CLI.

The CLI provides the following commands:
- check: Evaluate one JSON record against a named profile
- batch: Evaluate every row of a table against a named profile
- list-filters: List registered filters
- list-constraints: List registered constraints
- check-profile: Validate a profile file
"""

from cyclopts import App

from formcheck.cli import commands

app = App(
    name="formcheck",
    help="Declarative form and record validation",
    version="0.1.0",
)

app.command(commands.check)
app.command(commands.batch)
app.command(commands.list_filters, name="list-filters")
app.command(commands.list_constraints, name="list-constraints")
app.command(commands.check_profile, name="check-profile")
