from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017/"
    DB_NAME: str = "clinic_db"
    LOG_LEVEL: str = "INFO"

    CLINIC_NAME: str = "Vrushti Homeopathic & Diet Clinic"

    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "no-reply@vrushticlinic.com"
    MAIL_FROM_NAME: str = "Clinic App"
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False

    S3_BUCKET: str = "clinic-app-files"
    S3_REGION: str = "ap-south-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    BLOB_FOLDER: str = "clinic_app/patient_reports"
    IMAGE_MAX_WIDTH: int = 1024

    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
