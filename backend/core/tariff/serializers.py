from rest_framework import serializers

from tariff.engine import ActivityShare, PriorClaim, RcdPremiumParams
from tariff.tables import DEFAULT_TAX_RATE, DEFAULT_TI_RATE


class ActivityShareSerializer(serializers.Serializer):
    code = serializers.IntegerField(min_value=1)
    caSharePercent = serializers.DecimalField(max_digits=7, decimal_places=4, min_value=0)


class PriorClaimSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1900)
    numClaims = serializers.IntegerField(min_value=0)
    totalCost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class RcdPremiumRequestSerializer(serializers.Serializer):
    caDeclared = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    etp = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0)
    activites = ActivityShareSerializer(many=True, required=False, default=list)
    dateCreation = serializers.DateField(required=False, allow_null=True, default=None)
    tempsSansActivite12mois = serializers.BooleanField(required=False, default=False)
    anneeExperience = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True, default=None
    )
    assureurDefaillant = serializers.BooleanField(required=False, default=False)
    nombreAnneeAssuranceContinue = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, default=0
    )
    qualif = serializers.BooleanField(required=False, default=False)
    ancienneAssurance = serializers.CharField(required=False, allow_blank=True, default="")
    activiteSansEtreAssure = serializers.BooleanField(required=False, default=False)
    experienceDirigeant = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True, default=None
    )
    nomDeLAssureur = serializers.CharField(required=False, allow_blank=True, default="")
    dateEffet = serializers.DateField(required=False, allow_null=True, default=None)
    dateFinCouverturePrecedente = serializers.DateField(required=False, allow_null=True, default=None)
    sinistresPrecedents = PriorClaimSerializer(many=True, required=False, default=list)
    tauxTI = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, default=DEFAULT_TI_RATE)
    coefficientAntecedent = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, default=1)
    taxRate = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, default=DEFAULT_TAX_RATE)

    def to_params(self) -> RcdPremiumParams:
        data = self.validated_data
        return RcdPremiumParams(
            ca_declared=data["caDeclared"],
            etp=data["etp"],
            activites=[
                ActivityShare(code=item["code"], ca_share_percent=item["caSharePercent"])
                for item in data["activites"]
            ],
            date_creation=data["dateCreation"],
            temps_sans_activite_12_mois=data["tempsSansActivite12mois"],
            annee_experience=data["anneeExperience"],
            assureur_defaillant=data["assureurDefaillant"],
            nombre_annee_assurance_continue=data["nombreAnneeAssuranceContinue"],
            qualif=data["qualif"],
            ancienne_assurance=data["ancienneAssurance"],
            activite_sans_etre_assure=data["activiteSansEtreAssure"],
            experience_dirigeant=data["experienceDirigeant"],
            nom_de_l_assureur=data["nomDeLAssureur"],
            date_effet=data["dateEffet"],
            date_fin_couverture_precedente=data["dateFinCouverturePrecedente"],
            sinistres_precedents=[
                PriorClaim(year=item["year"], num_claims=item["numClaims"], total_cost=item["totalCost"])
                for item in data["sinistresPrecedents"]
            ],
            taux_ti=data["tauxTI"],
            coefficient_antecedent=data["coefficientAntecedent"],
            tax_rate=data["taxRate"],
        )
