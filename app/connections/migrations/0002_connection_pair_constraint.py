"""
Make connection request uniqueness independent of direction.

Constraints:
    - unique_connection_request (requester, receiver) is replaced by
      unique_connection_pair on (LEAST, GREATEST) of the two users, so
      A -> B and B -> A can no longer coexist.
"""

import django.db.models.functions.comparison
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("connections", "0001_initial"),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name="connectionrequest",
            name="unique_connection_request",
        ),
        migrations.AddConstraint(
            model_name="connectionrequest",
            constraint=models.UniqueConstraint(
                django.db.models.functions.comparison.Least("requester", "receiver"),
                django.db.models.functions.comparison.Greatest("requester", "receiver"),
                name="unique_connection_pair",
            ),
        ),
    ]
