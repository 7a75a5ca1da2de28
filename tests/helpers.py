"""Row builders and storage fakes shared by the tests"""

from datetime import datetime

from therapydesk.models import SessionFolder, TherapySession


def add_folder(db, student, name, is_active=False, created_at=None):
    folder = SessionFolder(
        student_id=student.id,
        name=name,
        is_active=is_active,
        total_sessions=0,
        completed_sessions=0,
        status="active",
    )
    if created_at is not None:
        folder.created_at = created_at
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def add_session(db, student, folder, number, status="locked"):
    session = TherapySession(
        student_id=student.id,
        folder_id=folder.id if folder is not None else None,
        session_number=number,
        title=f"Session {number}",
        date=datetime(2024, 1, 1, 16, 0),
        duration=45,
        status=status,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client used against R2"""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType=None, Metadata=None):
        self.objects[Key] = {"Body": Body, "ContentType": ContentType, "Metadata": Metadata or {}}
        return {}

    def list_objects_v2(self, Bucket, MaxKeys=1000, Prefix="", ContinuationToken=None):
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        return {
            "Contents": [{"Key": k, "Size": len(self.objects[k]["Body"])} for k in keys],
            "IsTruncated": False,
        }

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        return {}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://r2.test/{Params['Key']}?expires={ExpiresIn}"
