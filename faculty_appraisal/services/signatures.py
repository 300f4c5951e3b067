from typing import Optional
from sqlalchemy.orm import Session

from faculty_appraisal.models.signature import Signature
from faculty_appraisal.services.base import BaseService


class SignatureService(BaseService):
    def append(
        self,
        appraisal_id: int,
        signer_id: int,
        signer_role: str,
        note: Optional[str] = None,
    ) -> Optional[Signature]:
        """
        Append a sign-off record. Strictly append-only.
        Best-effort: a failure is logged and swallowed so it never undoes the
        transition it documents. Call after that transition has committed.
        """
        try:
            signature = Signature(
                appraisal_id=appraisal_id,
                signer_id=signer_id,
                signer_role=signer_role,
                note=note,
            )
            self.db.add(signature)
            self.db.commit()
            return signature
        except Exception as e:
            self.db.rollback()
            self._logger.warning(f"FAILED TO APPEND SIGNATURE for appraisal {appraisal_id}: {e}", exc_info=True)
            return None

    # Static wrapper mirroring the other services' call style
    @staticmethod
    def sign(db: Session, *args, **kwargs):
        return SignatureService(db).append(*args, **kwargs)
