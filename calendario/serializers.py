from rest_framework import serializers

from .models import Discipline, Location, Match, MatchResult, Tournament


class DisciplineSerializer(serializers.ModelSerializer):
    class Meta:
        model = Discipline
        fields = ["id", "name", "slug"]


class TournamentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tournament
        fields = ["id", "name", "year"]


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ["id", "name", "city", "google_maps_url"]


class MatchResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = MatchResult
        fields = ["our_score", "rival_score", "scorers"]


class MatchSerializer(serializers.ModelSerializer):
    discipline = DisciplineSerializer(read_only=True)
    tournament = TournamentSerializer(read_only=True)
    location = LocationSerializer(read_only=True)
    result = serializers.SerializerMethodField()
    is_friendly = serializers.BooleanField(read_only=True)

    class Meta:
        model = Match
        fields = [
            "id",
            "discipline_id",
            "discipline",
            "match_date",
            "match_time",
            "rival_team",
            "match_type",
            "status",
            "tournament",
            "location",
            "result",
            "is_friendly",
        ]

    def get_result(self, obj):
        try:
            result = obj.result
        except MatchResult.DoesNotExist:
            return None
        return MatchResultSerializer(result).data
