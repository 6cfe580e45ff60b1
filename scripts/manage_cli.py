import sys
import argparse
from os.path import abspath, dirname
from getpass import getpass

root_dir = dirname(dirname(abspath(__file__)))
sys.path.append(root_dir)

from sunflow.db.session import SessionLocal
from sunflow.services.usuario import usuario_service
from sunflow.services.papel import papel_service, carregar_papeis_padrao
from sunflow.services.lembrete import enviar_lembretes
from sunflow.services.email_retry import email_retry_service
from sunflow.services.geocodificacao import geocodificar_pendentes
from sunflow.schemas.usuario import UsuarioCreate
from sunflow.core.permissions import PERMISSOES_POR_PAPEL

PAPEIS_PERMITIDOS = list(PERMISSOES_POR_PAPEL)

# --- Usuários ---

def create_user(db, nome: str, email: str, papel: str):
    print(f"Criando usuário para o email: {email}")
    if usuario_service.get_by_email(db, email=email):
        print(f"❌ Erro: já existe um usuário com o email '{email}'.")
        return
    papel_obj = papel_service.get_by_name(db, name=papel)
    if not papel_obj:
        print(f"❌ Erro: o papel '{papel}' não existe. Rode o comando 'seed' antes.")
        return
    password = getpass("Senha do novo usuário: ")
    if not password or len(password) < 8:
        print("❌ Erro: a senha deve ter pelo menos 8 caracteres.")
        return
    try:
        user_in = UsuarioCreate(nome_usuario=nome, email=email, password=password, papel_id=papel_obj.id)
        usuario_service.create(db, obj_in=user_in)
        db.commit()
        print(f"✅ Usuário '{nome}' com papel '{papel}' criado!")
    except Exception as e:
        db.rollback()
        print(f"❌ Erro inesperado ao criar o usuário: {e}")

def delete_user(db, email: str):
    try:
        user = usuario_service.get_by_email(db, email=email)
        if user:
            db.delete(user)
            db.commit()
            print(f"✅ Usuário '{email}' excluído.")
        else:
            print(f"⚠️ Nenhum usuário com o email '{email}'.")
    except Exception as e:
        print(f"❌ Erro ao excluir o usuário: {e}")
        db.rollback()

def list_users(db):
    print("\n--- USUÁRIOS E PAPÉIS ---")
    all_users = usuario_service.get_multi(db, skip=0, limit=1000)
    if not all_users:
        print("-> Nenhum usuário cadastrado.")
        return
    print(f"{'PAPEL':<18} | {'NOME DE USUÁRIO':<25} | {'EMAIL'}")
    print("-" * 70)
    for user in all_users:
        papel_nome = user.papel.nome if user.papel else "SEM PAPEL"
        print(f"{papel_nome:<18} | {user.nome_usuario:<25} | {user.email or 'Não informado'}")
    print("-" * 70)
    print(f"Total: {len(all_users)} usuários.")

# --- Rotinas (execução manual das tarefas agendadas) ---

def run_job(db, job: str):
    try:
        if job == "lembretes":
            resultado = enviar_lembretes(db)
        elif job == "fila-emails":
            resultado = email_retry_service.processar_fila(db)
        else:
            resultado = geocodificar_pendentes(db)
        db.commit()
        print(f"✅ {job}: {resultado}")
    except Exception as e:
        db.rollback()
        print(f"❌ Erro executando '{job}': {e}")

def seed(db):
    papeis = carregar_papeis_padrao(db)
    db.commit()
    print(f"✅ Papéis sincronizados: {', '.join(papeis)}")

def main():
    parser = argparse.ArgumentParser(description="Ferramenta de linha de comando do SunFlow.")
    subparsers = parser.add_subparsers(dest="command", help="Comandos disponíveis", required=True)

    parser_create = subparsers.add_parser("create", help="Criar um usuário.")
    parser_create.add_argument("--nome", type=str, required=True, help="Nome de usuário único.")
    parser_create.add_argument("--email", type=str, required=True)
    parser_create.add_argument("--papel", type=str, required=True, choices=PAPEIS_PERMITIDOS)

    parser_delete = subparsers.add_parser("delete", help="Excluir um usuário.")
    parser_delete.add_argument("--email", type=str, required=True)

    subparsers.add_parser("list-users", help="Listar usuários e papéis.")
    subparsers.add_parser("seed", help="Criar/sincronizar permissões e papéis padrão.")

    parser_run = subparsers.add_parser("run", help="Executar uma rotina agendada agora.")
    parser_run.add_argument("job", choices=["lembretes", "fila-emails", "geocodificacao"])

    args = parser.parse_args()
    db = SessionLocal()
    try:
        if args.command == "create":
            create_user(db, nome=args.nome, email=args.email, papel=args.papel)
        elif args.command == "delete":
            delete_user(db, email=args.email)
        elif args.command == "list-users":
            list_users(db)
        elif args.command == "seed":
            seed(db)
        elif args.command == "run":
            run_job(db, args.job)
    finally:
        db.close()

if __name__ == "__main__":
    main()
