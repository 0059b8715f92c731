from rest_framework.routers import DefaultRouter

from .api import DisciplineViewSet, MatchViewSet

router = DefaultRouter()
router.register(r"matches", MatchViewSet, basename="match")
router.register(r"disciplines", DisciplineViewSet, basename="discipline")

urlpatterns = router.urls
