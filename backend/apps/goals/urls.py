from django.urls import path

from .views import employee_goals, goal_create, goal_detail, goal_index

urlpatterns = [
    path("", goal_index, name="goal_index"),
    path("new/", goal_create, name="goal_create"),
    path("<int:goal_id>/", goal_detail, name="goal_detail"),
    path("employees/<int:employee_id>/", employee_goals, name="employee_goals"),
]
