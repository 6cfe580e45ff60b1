import sys
from os.path import abspath, dirname

root_dir = dirname(dirname(abspath(__file__)))
sys.path.append(root_dir)

from sqlalchemy.orm import Session
from sunflow.db.session import SessionLocal
from sunflow.services.usuario import usuario_service
from sunflow.services.papel import carregar_papeis_padrao
from sunflow.schemas.usuario import UsuarioCreate
from sunflow.core.config import settings
from sunflow.core.permissions import ADMIN_ROLE_NAME

def create_superuser():
    """
    Carrega permissões e papéis padrão e cria o superusuário a partir das
    variáveis de ambiente.
    """
    db: Session = SessionLocal()

    print("--- Iniciando criação do superusuário ---")

    try:
        papeis = carregar_papeis_padrao(db)
        db.commit()
        admin_papel = papeis[ADMIN_ROLE_NAME]
        print(f"Papéis sincronizados: {', '.join(papeis)} (admin ID: {admin_papel.id})")

        admin_email = settings.SUPERUSER_EMAIL
        admin_password = settings.SUPERUSER_PASSWORD

        if not admin_email or admin_email == "None" or not admin_password or admin_password == "None":
            print("!!! ERRO: defina SUPERUSER_EMAIL e SUPERUSER_PASSWORD no arquivo .env. Saindo. !!!")
            return

        superuser = usuario_service.get_by_email(db, email=admin_email)

        if not superuser:
            print(f"Criando superusuário com email: {admin_email}")
            superuser_in = UsuarioCreate(
                email=admin_email,
                password=admin_password,
                nome_usuario="admin",
                papel_id=admin_papel.id
            )
            usuario_service.create(db, obj_in=superuser_in)
            db.commit()
            print("Superusuário criado com sucesso!")
        else:
            print(f"O superusuário com email '{admin_email}' já existe.")

    except Exception as e:
        print(f"Ocorreu um erro: {e}")
        db.rollback()
    finally:
        print("--- Script finalizado ---")
        db.close()

if __name__ == "__main__":
    create_superuser()
