"""
Erreurs métier de l'API.

Chaque erreur porte un message lisible et le code HTTP correspondant ;
le handler enregistré dans main.py les transforme en réponse JSON {"detail": ...}.
"""


class AppelError(Exception):
    """Base de toutes les erreurs métier."""

    status_code = 400
    default_message = "Requête invalide."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ForbiddenError(AppelError):
    status_code = 403
    default_message = "Accès refusé."


class NotFoundError(AppelError):
    status_code = 404
    default_message = "Ressource introuvable."


class InvalidOrExpiredCodeError(AppelError):
    status_code = 400
    default_message = "Code invalide ou expiré."


class AlreadyRecordedError(AppelError):
    """L'élève a déjà enregistré sa présence aujourd'hui pour cette classe."""

    status_code = 409
    default_message = "Présence déjà enregistrée aujourd'hui pour cette classe."


class DuplicateRecordError(AppelError):
    status_code = 409
    default_message = "Un enregistrement existe déjà."


class AlreadyEnrolledError(AppelError):
    status_code = 409
    default_message = "Déjà inscrit dans cette classe."


class InvalidArgumentError(AppelError):
    status_code = 400
    default_message = "Paramètre invalide."


class CodeSpaceExhaustedError(AppelError):
    """Les 900 codes à 3 chiffres sont tous actifs en même temps."""

    status_code = 503
    default_message = "Aucun code de présence disponible, réessayez plus tard."


class StorageError(AppelError):
    """Échec inattendu de la base de données (hors contrainte d'unicité)."""

    status_code = 503
    default_message = "Erreur de stockage, réessayez plus tard."
