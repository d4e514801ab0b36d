# Importer tous les modules de modèles pour enregistrer toutes les tables dans la metadata
from noken.db.session import Base  # noqa: F401
from noken.auth.models import User, EmailVerification, PasswordReset  # noqa: F401
from noken.offres.models import Offre, OffreTag, OffreFichier  # noqa: F401
from noken.cv.models import CV, Experience, Formation  # noqa: F401
from noken.commentaires.models import Commentaire  # noqa: F401
from noken.retours.models import Retour, ReponseRetour  # noqa: F401
from noken.favorites.models import Favorite  # noqa: F401
from noken.messaging.models import PrivateConversation, PrivateMessage  # noqa: F401
from noken.messages.models import Message, ReponseMessage  # noqa: F401
from noken.notifications.models import Notification  # noqa: F401
from noken.chatbot.models import ChatConversation, ChatMessage  # noqa: F401
