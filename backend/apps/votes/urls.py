"""
URLs for Votes app.
"""

from django.urls import path

from .views import VoteView

urlpatterns = [
    path("polls/<uuid:poll_id>/vote/", VoteView.as_view(), name="poll-vote"),
]
